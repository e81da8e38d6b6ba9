"""
Tests for request execution with placeholder substitution and response capture.

Requests go through httpx.MockTransport, so nothing leaves the process.
"""

import asyncio
import json

import httpx
import pytest

from http_variables.exceptions import InvalidSyntax, UndefinedVariable
from http_variables.schemas.execute import ExecuteErrorResponse, ExecuteRequest, ExecuteResponse
from http_variables.services.http_executor import (
    apply_variable_substitution,
    execute_request,
    parse_json_body,
)
from http_variables.services.scopes import ScopeModel
from http_variables.services.session_store import SessionStore


def run(coro):
    return asyncio.run(coro)


def login_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/login":
        return httpx.Response(
            200,
            json={"access_token": "tok-123", "user": {"id": 42}},
            headers={"X-Session-Id": "sess-9"},
        )
    if request.url.path == "/me":
        if request.headers.get("Authorization") != "Bearer tok-123":
            return httpx.Response(401, json={"error": "unauthorized"})
        return httpx.Response(200, json={"name": "ada"})
    return httpx.Response(404, text="not found")


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def scopes():
    return ScopeModel(
        file={"baseUrl": "https://api.example.com", "user": "ada"},
        environment={"password": "s3cret"},
    )


class TestApplyVariableSubstitution:
    def test_every_part_is_substituted(self, scopes):
        request = ExecuteRequest(
            method="POST",
            url="{{baseUrl}}/login",
            headers={"X-{{user}}": "{{password}}"},
            query_params={"who": "{{user}}"},
            body='{"user": "{{user}}"}',
        )
        resolved = apply_variable_substitution(request, scopes)

        assert resolved.url == "https://api.example.com/login"
        assert resolved.headers == {"X-ada": "s3cret"}
        assert resolved.query_params == {"who": "ada"}
        assert resolved.body == '{"user": "ada"}'

    def test_original_request_is_unchanged(self, scopes):
        request = ExecuteRequest(method="GET", url="{{baseUrl}}")
        apply_variable_substitution(request, scopes)
        assert request.url == "{{baseUrl}}"

    def test_missing_body_stays_missing(self, scopes):
        request = ExecuteRequest(method="GET", url="{{baseUrl}}")
        assert apply_variable_substitution(request, scopes).body is None

    def test_undefined_variable_fails(self, scopes):
        request = ExecuteRequest(method="GET", url="{{nope}}/x")
        with pytest.raises(UndefinedVariable):
            apply_variable_substitution(request, scopes)


class TestExecuteRequest:
    def test_captures_are_recorded_in_session(self, scopes, store):
        request = ExecuteRequest(
            method="POST",
            url="{{baseUrl}}/login",
            body='{"user": "{{user}}", "password": "{{password}}"}',
            captures=(
                "# @capture token = $.access_token\n"
                "# @capture userId = $.user.id\n"
                "# @capture sessionId = headers.x-session-id\n"
            ),
        )
        result = run(execute_request(
            request, scopes, session_id="s1", store=store, transport=httpx.MockTransport(login_handler)
        ))

        assert isinstance(result, ExecuteResponse)
        assert result.status_code == 200
        assert result.captured == {"token": "tok-123", "userId": "42", "sessionId": "sess-9"}
        assert result.body_json == {"access_token": "tok-123", "user": {"id": 42}}
        assert store.get("s1") == result.captured

    def test_captured_value_feeds_next_request(self, scopes, store):
        transport = httpx.MockTransport(login_handler)
        login = ExecuteRequest(
            method="POST",
            url="{{baseUrl}}/login",
            captures="# @capture token = $.access_token",
        )
        run(execute_request(login, scopes, session_id="s1", store=store, transport=transport))

        follow_up = ExecuteRequest(
            method="GET",
            url="{{baseUrl}}/me",
            headers={"Authorization": "Bearer {{token}}"},
        )
        next_scopes = scopes.with_captured(store.get("s1"))
        result = run(execute_request(follow_up, next_scopes, session_id="s1", store=store, transport=transport))

        assert result.status_code == 200
        assert result.body_json == {"name": "ada"}

    def test_request_body_is_sent_substituted(self, scopes, store):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(204)

        request = ExecuteRequest(
            method="PUT",
            url="{{baseUrl}}/users",
            query_params={"name": "{{user}}"},
            body='{"password": "{{password}}"}',
        )
        result = run(execute_request(request, scopes, store=store, transport=httpx.MockTransport(handler)))

        assert result.status_code == 204
        assert seen["url"] == "https://api.example.com/users?name=ada"
        assert seen["body"] == {"password": "s3cret"}
        assert result.captured == {}

    def test_failed_capture_records_nothing(self, scopes, store):
        request = ExecuteRequest(
            method="POST",
            url="{{baseUrl}}/login",
            captures="# @capture token = $.access_token\n# @capture gone = $.missing",
        )
        with pytest.raises(UndefinedVariable):
            run(execute_request(
                request, scopes, session_id="s1", store=store, transport=httpx.MockTransport(login_handler)
            ))
        assert store.get("s1") == {}

    def test_json_capture_on_text_response(self, scopes, store):
        request = ExecuteRequest(
            method="GET",
            url="{{baseUrl}}/elsewhere",
            captures="# @capture value = $.value",
        )
        with pytest.raises(InvalidSyntax):
            run(execute_request(request, scopes, store=store, transport=httpx.MockTransport(login_handler)))

    def test_undefined_variable_sends_nothing(self, store):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        request = ExecuteRequest(method="GET", url="{{missing}}/x")
        with pytest.raises(UndefinedVariable):
            run(execute_request(request, ScopeModel(), store=store, transport=httpx.MockTransport(handler)))
        assert calls == []

    @pytest.mark.parametrize("exception, error_type", [
        (httpx.ConnectError("refused"), "network_error"),
        (httpx.ReadTimeout("slow"), "timeout"),
        (httpx.RemoteProtocolError("broken"), "network_error"),
    ])
    def test_transport_errors(self, store, exception, error_type):
        def handler(request: httpx.Request) -> httpx.Response:
            raise exception

        request = ExecuteRequest(method="GET", url="https://api.example.com/")
        result = run(execute_request(request, ScopeModel(), store=store, transport=httpx.MockTransport(handler)))

        assert isinstance(result, ExecuteErrorResponse)
        assert result.error_type == error_type

    def test_unsupported_scheme_is_invalid_url(self, store):
        request = ExecuteRequest(method="GET", url="ftp://example.com/file")
        result = run(execute_request(request, ScopeModel(), store=store))

        assert isinstance(result, ExecuteErrorResponse)
        assert result.error_type == "invalid_url"


class TestParseJsonBody:
    def test_json_content(self):
        assert parse_json_body('{"a": 1}', "application/json; charset=utf-8") == {"a": 1}

    def test_non_json_content(self):
        assert parse_json_body('{"a": 1}', "text/plain") is None

    def test_malformed_json(self):
        assert parse_json_body("{oops", "application/json") is None

    def test_empty_body(self):
        assert parse_json_body("", "application/json") is None
