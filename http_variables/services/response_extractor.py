"""
Response value extraction for capture directives.

Values are pulled out of a received response by header name or by a small
JSONPath subset: dotted field names and ``[n]`` array indexes, rooted at
``$`` or ``@``. XPath paths are recognized but not evaluated.
"""

import json
import math
import logging
from enum import Enum
from typing import Any, Iterable, List

from pydantic import BaseModel

from ..exceptions import InvalidSyntax, UndefinedVariable, unsupported
from .capture import CaptureDirective, CapturePath, PathKind, classify_path


logger = logging.getLogger(__name__)


class ContentType(str, Enum):
    """Response body classification used to pick an extraction strategy."""
    JSON = "json"
    XML = "xml"
    HTML = "html"
    TEXT = "text"
    BINARY = "binary"

    @classmethod
    def from_header(cls, content_type: str | None) -> "ContentType":
        """
        Classify a Content-Type header value.

        Example:
            >>> ContentType.from_header("application/vnd.api+json; charset=utf-8")
            <ContentType.JSON: 'json'>
        """
        if not content_type:
            return cls.BINARY

        media_type = content_type.lower().split(";", 1)[0].strip()
        if "json" in media_type:
            return cls.JSON
        if "xml" in media_type:
            return cls.XML
        if media_type.startswith("text/html"):
            return cls.HTML
        if media_type.startswith("text/"):
            return cls.TEXT
        return cls.BINARY


class ResponseSnapshot(BaseModel):
    """The parts of a received HTTP response that values are extracted from."""
    status_code: int = 200
    headers: dict[str, str] = {}
    body: bytes = b""

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def content_type(self) -> ContentType:
        return ContentType.from_header(self.header("content-type"))


class FieldSegment(str):
    """Object key segment of a JSON path."""


class IndexSegment(int):
    """Array index segment of a JSON path."""


def parse_json_path(path: str) -> List[FieldSegment | IndexSegment]:
    """
    Split a JSON path into field and index segments.

    A leading ``$`` or ``@`` and one following ``.`` are dropped. Bracket
    contents that are not an integer are skipped.

    Example:
        >>> parse_json_path("$.items[0].id")
        ['items', 0, 'id']
    """
    path = path.strip()
    if path[:1] in ("$", "@"):
        path = path[1:]
    if path.startswith("."):
        path = path[1:]

    segments: List[FieldSegment | IndexSegment] = []
    current: List[str] = []
    position = 0

    def flush() -> None:
        if current:
            segments.append(FieldSegment("".join(current)))
            current.clear()

    while position < len(path):
        ch = path[position]
        if ch == ".":
            flush()
        elif ch == "[":
            flush()
            end = path.find("]", position + 1)
            if end == -1:
                end = len(path)
            index_text = path[position + 1:end].strip()
            if index_text.isascii() and index_text.isdigit():
                segments.append(IndexSegment(int(index_text)))
            position = end
        else:
            current.append(ch)
        position += 1

    flush()
    return segments


def evaluate_json_path(document: Any, path: str) -> Any:
    """
    Walk a parsed JSON document along a path.

    Raises:
        UndefinedVariable: If a field is missing or an index is out of bounds
    """
    current = document
    for segment in parse_json_path(path):
        if isinstance(segment, IndexSegment):
            if not isinstance(current, list) or segment >= len(current):
                raise UndefinedVariable(f"Array index {int(segment)} out of bounds")
            current = current[segment]
        else:
            if not isinstance(current, dict) or segment not in current:
                raise UndefinedVariable(f"Field '{segment}' not found in JSON")
            current = current[segment]
    return current


def json_value_to_string(value: Any) -> str:
    """Strings come back unquoted; everything else as compact JSON text."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def extract_header_value(response: ResponseSnapshot, name: str) -> str:
    value = response.header(name)
    if value is None:
        raise UndefinedVariable(f"Header '{name}' not found in response")
    return value


def _reject_constant(name: str) -> Any:
    raise InvalidSyntax(f"Invalid JSON value: {name}")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise InvalidSyntax(f"JSON number out of range: {text}")
    return value


def extract_json_value(response: ResponseSnapshot, path: str) -> str:
    try:
        text = response.body.decode("utf-8")
    except UnicodeDecodeError:
        raise InvalidSyntax("Response body is not valid UTF-8") from None

    try:
        document = json.loads(
            text, parse_constant=_reject_constant, parse_float=_parse_finite_float
        )
    except json.JSONDecodeError as e:
        raise InvalidSyntax(f"Failed to parse JSON response: {e}") from None

    return json_value_to_string(evaluate_json_path(document, path))


def extract(
    response: ResponseSnapshot,
    path: CapturePath,
    content_type: ContentType,
) -> str:
    """
    Extract one value from a response.

    Args:
        response: Received response headers and body
        path: Classified extraction path
        content_type: How the response body is declared

    Returns:
        The extracted value as text

    Raises:
        UndefinedVariable: Missing header, field or index
        InvalidSyntax: JSONPath on a non-JSON response, unparsable body,
            or any XPath path
    """
    if path.kind is PathKind.HEADER:
        return extract_header_value(response, path.expression)

    if path.kind is PathKind.JSON_PATH:
        if content_type is not ContentType.JSON:
            raise InvalidSyntax(
                f"JSONPath extraction requires JSON content type, got {content_type.value}"
            )
        return extract_json_value(response, path.expression)

    raise unsupported("XPath extraction")


def extract_response_variable(
    response: ResponseSnapshot,
    path: str,
    content_type: ContentType | None = None,
) -> str:
    """Classify a raw path string and extract it from the response."""
    if content_type is None:
        content_type = response.content_type
    return extract(response, classify_path(path), content_type)


def apply_captures(
    response: ResponseSnapshot,
    directives: Iterable[CaptureDirective],
    content_type: ContentType | None = None,
) -> dict[str, str]:
    """
    Extract every directive's value from a response.

    Stops at the first failing directive; nothing is returned in that case.
    """
    if content_type is None:
        content_type = response.content_type

    captured: dict[str, str] = {}
    for directive in directives:
        captured[directive.variable_name] = extract(response, directive.path, content_type)
        logger.debug("Captured %s from %s", directive.variable_name, directive.path.expression)
    return captured
