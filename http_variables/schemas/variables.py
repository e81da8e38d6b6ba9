"""
Pydantic schemas for the resolution API.

Covers placeholder substitution, response value extraction, capture
directive parsing and session inspection.
"""

from pydantic import BaseModel

from ..services.capture import CaptureDirective
from ..services.response_extractor import ContentType
from ..services.scopes import ScopeSource


class ResolveRequest(BaseModel):
    """
    Text to resolve plus the scopes to resolve it against.

    ``request_variables`` are layered over the session's captured values.
    Environment and shared scopes come from the environment store.
    """
    text: str
    file_variables: dict[str, str] = {}
    request_variables: dict[str, str] = {}
    session_id: str | None = None
    environment_id: int | None = None


class ResolveResponse(BaseModel):
    """Resolved text and the placeholder names it referenced."""
    text: str
    variables: list[str] = []


class VariableSourceResponse(BaseModel):
    """Where a variable name currently resolves from."""
    name: str
    value: str | None
    source: ScopeSource | None


class ExtractRequest(BaseModel):
    """A received response and the path to extract from it."""
    path: str
    headers: dict[str, str] = {}
    body: str = ""
    content_type: ContentType | None = None


class ExtractResponse(BaseModel):
    value: str


class ParseCapturesRequest(BaseModel):
    text: str


class ParseCapturesResponse(BaseModel):
    directives: list[CaptureDirective] = []


class SessionResponse(BaseModel):
    """Variables captured so far in a session."""
    session_id: str
    variables: dict[str, str] = {}
