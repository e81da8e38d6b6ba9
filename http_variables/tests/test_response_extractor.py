"""
Tests for extracting captured values out of responses.
"""

import json

import pytest
from hypothesis import given, strategies as st, settings

from http_variables.exceptions import InvalidSyntax, UndefinedVariable
from http_variables.services.capture import CapturePath, parse_capture_directives
from http_variables.services.response_extractor import (
    ContentType,
    ResponseSnapshot,
    apply_captures,
    extract,
    extract_response_variable,
    json_value_to_string,
    parse_json_path,
)


def json_response(document, content_type="application/json", headers=None):
    all_headers = {"Content-Type": content_type}
    all_headers.update(headers or {})
    return ResponseSnapshot(headers=all_headers, body=json.dumps(document).encode("utf-8"))


class TestContentType:
    @pytest.mark.parametrize("header, expected", [
        ("application/json", ContentType.JSON),
        ("application/json; charset=utf-8", ContentType.JSON),
        ("application/problem+json", ContentType.JSON),
        ("Application/JSON", ContentType.JSON),
        ("application/xml", ContentType.XML),
        ("text/xml", ContentType.XML),
        ("text/html; charset=utf-8", ContentType.HTML),
        ("text/plain", ContentType.TEXT),
        ("text/csv", ContentType.TEXT),
        ("application/octet-stream", ContentType.BINARY),
        ("image/png", ContentType.BINARY),
        ("", ContentType.BINARY),
        (None, ContentType.BINARY),
    ])
    def test_from_header(self, header, expected):
        assert ContentType.from_header(header) is expected

    def test_snapshot_reads_content_type_header(self):
        response = ResponseSnapshot(headers={"content-type": "text/plain"})
        assert response.content_type is ContentType.TEXT


class TestJsonPathExtraction:
    def test_nested_field_and_index(self):
        response = json_response({"a": {"b": [{"c": "x"}]}})
        assert extract_response_variable(response, "$.a.b[0].c") == "x"

    def test_missing_field(self):
        response = json_response({"a": 1})
        with pytest.raises(UndefinedVariable) as exc_info:
            extract_response_variable(response, "$.missing")
        assert "Field 'missing' not found in JSON" in str(exc_info.value)

    def test_index_out_of_bounds(self):
        response = json_response({"items": [1, 2]})
        with pytest.raises(UndefinedVariable) as exc_info:
            extract_response_variable(response, "$.items[5]")
        assert "Array index 5 out of bounds" in str(exc_info.value)

    def test_index_into_object_is_undefined(self):
        response = json_response({"items": {"0": "zero"}})
        with pytest.raises(UndefinedVariable):
            extract_response_variable(response, "$.items[0]")

    def test_field_of_array_is_undefined(self):
        response = json_response({"items": [1]})
        with pytest.raises(UndefinedVariable):
            extract_response_variable(response, "$.items.length")

    def test_root_array(self):
        response = json_response([{"id": 7}, {"id": 8}])
        assert extract_response_variable(response, "$[1].id") == "8"

    def test_at_rooted_path(self):
        response = json_response({"token": "abc"})
        assert extract_response_variable(response, "@.token") == "abc"

    def test_root_returns_whole_document(self):
        response = json_response({"a": [1, 2]})
        assert extract_response_variable(response, "$") == '{"a":[1,2]}'

    @pytest.mark.parametrize("value, expected", [
        ("text", "text"),
        (42, "42"),
        (1.5, "1.5"),
        (True, "true"),
        (False, "false"),
        (None, "null"),
        ([1, "two"], '[1,"two"]'),
        ({"k": "v"}, '{"k":"v"}'),
    ])
    def test_terminal_value_conversion(self, value, expected):
        response = json_response({"value": value})
        assert extract_response_variable(response, "$.value") == expected

    def test_non_ascii_kept_literal(self):
        response = json_response({"value": ["héllo"]})
        assert extract_response_variable(response, "$.value") == '["héllo"]'

    def test_non_json_content_type(self):
        response = ResponseSnapshot(headers={"Content-Type": "text/plain"}, body=b'{"a": 1}')
        with pytest.raises(InvalidSyntax) as exc_info:
            extract_response_variable(response, "$.a")
        assert "requires JSON content type" in str(exc_info.value)

    def test_explicit_content_type_overrides_header(self):
        response = ResponseSnapshot(headers={"Content-Type": "text/plain"}, body=b'{"a": 1}')
        assert extract_response_variable(response, "$.a", ContentType.JSON) == "1"

    def test_malformed_json_body(self):
        response = ResponseSnapshot(headers={"Content-Type": "application/json"}, body=b"{not json")
        with pytest.raises(InvalidSyntax):
            extract_response_variable(response, "$.a")

    @pytest.mark.parametrize("body", [
        b'{"a": NaN}',
        b'{"a": Infinity}',
        b'{"a": -Infinity}',
        b'{"a": 1e400}',
        b'{"a": 1, "b": [-1e999]}',
    ])
    def test_non_finite_numbers_rejected(self, body):
        response = ResponseSnapshot(headers={"Content-Type": "application/json"}, body=body)
        with pytest.raises(InvalidSyntax):
            extract_response_variable(response, "$.a")

    def test_finite_floats_still_parse(self):
        response = ResponseSnapshot(headers={"Content-Type": "application/json"}, body=b'{"a": 1.5e3}')
        assert extract_response_variable(response, "$.a") == "1500.0"

    def test_invalid_utf8_body(self):
        response = ResponseSnapshot(headers={"Content-Type": "application/json"}, body=b"\xff\xfe")
        with pytest.raises(InvalidSyntax):
            extract_response_variable(response, "$.a")


class TestHeaderExtraction:
    def test_case_insensitive_lookup(self):
        response = ResponseSnapshot(headers={"X-Request-Id": "req-1"})
        assert extract_response_variable(response, "headers.x-request-id") == "req-1"

    def test_header_extraction_ignores_content_type(self):
        response = ResponseSnapshot(headers={"Content-Type": "image/png", "ETag": "abc"}, body=b"\x89PNG")
        assert extract(response, CapturePath.header("etag"), ContentType.BINARY) == "abc"

    def test_missing_header(self):
        response = ResponseSnapshot(headers={})
        with pytest.raises(UndefinedVariable) as exc_info:
            extract_response_variable(response, "headers.X-Missing")
        assert "Header 'X-Missing' not found in response" in str(exc_info.value)


class TestXPathExtraction:
    def test_xpath_is_not_supported(self):
        response = ResponseSnapshot(headers={"Content-Type": "application/xml"}, body=b"<a><b>1</b></a>")
        with pytest.raises(InvalidSyntax) as exc_info:
            extract_response_variable(response, "//a/b")
        assert "not yet implemented" in str(exc_info.value)


class TestParseJsonPath:
    def test_segments(self):
        assert parse_json_path("$.items[0].id") == ["items", 0, "id"]

    def test_non_integer_brackets_skipped(self):
        assert parse_json_path("$.items[*].id") == ["items", "id"]

    def test_empty_after_root(self):
        assert parse_json_path("$") == []

    @given(document=st.recursive(
        st.none() | st.booleans() | st.integers() | st.text(),
        lambda children: st.lists(children, max_size=3) | st.dictionaries(st.text(max_size=5), children, max_size=3),
        max_leaves=10,
    ))
    @settings(max_examples=100)
    def test_non_string_values_are_valid_json(self, document):
        """Property: serialized non-string values parse back to the same value."""
        text = json_value_to_string(document)
        if isinstance(document, str):
            assert text == document
        else:
            assert json.loads(text) == document


class TestApplyCaptures:
    def test_captures_every_directive(self):
        response = json_response({"token": "t-1", "user": {"id": 9}}, headers={"X-Session": "s-1"})
        directives = parse_capture_directives(
            "# @capture token = $.token\n"
            "# @capture userId = $.user.id\n"
            "# @capture session = headers.X-Session\n"
        )
        assert apply_captures(response, directives) == {"token": "t-1", "userId": "9", "session": "s-1"}

    def test_no_directives(self):
        assert apply_captures(json_response({}), []) == {}

    def test_first_failure_propagates(self):
        response = json_response({"token": "t-1"})
        directives = parse_capture_directives("# @capture token = $.token\n# @capture missing = $.nope")
        with pytest.raises(UndefinedVariable):
            apply_captures(response, directives)
