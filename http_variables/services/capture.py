"""
Capture directive parsing.

A capture directive is a comment line in a request file that names a
variable and a path into the response::

    # @capture authToken = $.token
    # @capture userId = $.user.id
    # @capture sessionId = headers.X-Session-Id

Lines that do not match are ordinary comments, not errors.
"""

import re
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict


# Pattern to match "# @capture name = path"
CAPTURE_DIRECTIVE_PATTERN = re.compile(
    r'^\s*#\s*@capture\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*=\s*(.+?)\s*$'
)

HEADER_PREFIX = "headers."


class PathKind(str, Enum):
    HEADER = "header"
    JSON_PATH = "jsonpath"
    XPATH = "xpath"


class CapturePath(BaseModel):
    """Where in a response a captured value comes from."""
    model_config = ConfigDict(frozen=True)

    kind: PathKind
    expression: str

    @classmethod
    def header(cls, name: str) -> "CapturePath":
        return cls(kind=PathKind.HEADER, expression=name)

    @classmethod
    def json_path(cls, expression: str) -> "CapturePath":
        return cls(kind=PathKind.JSON_PATH, expression=expression)

    @classmethod
    def xpath(cls, expression: str) -> "CapturePath":
        return cls(kind=PathKind.XPATH, expression=expression)


class CaptureDirective(BaseModel):
    """A parsed ``# @capture`` line."""
    model_config = ConfigDict(frozen=True)

    variable_name: str
    path: CapturePath


def classify_path(path: str) -> CapturePath:
    """
    Decide whether a capture path is a header, JSONPath or XPath expression.

    Rules, checked in order:
    - ``headers.<Name>`` is a header lookup
    - starting with ``$`` or ``@.``, or containing ``$.``, is JSONPath
    - containing ``[`` and ``]`` without a leading ``/`` is JSONPath
    - anything else is XPath

    Example:
        >>> classify_path("items[0].id").kind
        <PathKind.JSON_PATH: 'jsonpath'>
    """
    trimmed = path.strip()

    if trimmed.startswith(HEADER_PREFIX):
        return CapturePath.header(trimmed[len(HEADER_PREFIX):].strip())

    if trimmed.startswith("$") or trimmed.startswith("@.") or "$." in trimmed:
        return CapturePath.json_path(trimmed)

    if "[" in trimmed and "]" in trimmed and not trimmed.startswith("/"):
        return CapturePath.json_path(trimmed)

    return CapturePath.xpath(trimmed)


def parse_capture_directive(line: str) -> CaptureDirective | None:
    """
    Parse a single line as a capture directive.

    Returns:
        The directive, or None when the line is not a capture directive
    """
    match = CAPTURE_DIRECTIVE_PATTERN.match(line)
    if match is None:
        return None

    return CaptureDirective(
        variable_name=match.group(1),
        path=classify_path(match.group(2)),
    )


def parse_capture_directives(text: str) -> List[CaptureDirective]:
    """Parse every capture directive in a block of text, in line order."""
    directives = []
    for line in text.splitlines():
        directive = parse_capture_directive(line)
        if directive is not None:
            directives.append(directive)
    return directives


def _brackets_balanced(path: str, pairs: dict[str, str]) -> bool:
    closers = {close: open_ for open_, close in pairs.items()}
    stack: List[str] = []
    for ch in path:
        if ch in pairs:
            stack.append(ch)
        elif ch in closers:
            if not stack or stack.pop() != closers[ch]:
                return False
    return not stack


def validate_jsonpath(path: str) -> bool:
    """
    Basic JSONPath syntax check: non-empty, rooted at ``$`` or ``@`` and
    with balanced brackets. Full validation happens during extraction.
    """
    if not path or path[0] not in ("$", "@"):
        return False
    return _brackets_balanced(path, {"[": "]"})


def validate_xpath(path: str) -> bool:
    """Basic XPath syntax check: non-empty with balanced brackets and parentheses."""
    if not path:
        return False
    return _brackets_balanced(path, {"[": "]", "(": ")"})
