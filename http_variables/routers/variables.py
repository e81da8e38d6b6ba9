"""
Variable resolution API routes.

Exposes placeholder substitution, response value extraction, capture
directive parsing and the per-session captured variables. Resolution
failures are reported through the VariableError exception handler.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import ResourceNotFoundError
from ..schemas.variables import (
    ResolveRequest,
    ResolveResponse,
    VariableSourceResponse,
    ExtractRequest,
    ExtractResponse,
    ParseCapturesRequest,
    ParseCapturesResponse,
    SessionResponse,
)
from ..services.capture import parse_capture_directives
from ..services.http_executor import build_scopes
from ..services.response_extractor import ResponseSnapshot, extract_response_variable
from ..services.session_store import SessionStore, get_session_store
from ..services.variable_substitution import extract_variables, substitute


router = APIRouter(prefix="/api/variables", tags=["variables"])


@router.post("/resolve", response_model=ResolveResponse)
def resolve_text(
    payload: ResolveRequest,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
):
    """
    Substitute every placeholder in a piece of request text.

    Returns 404 for undefined variables and 422 for other resolution errors.
    """
    scopes = build_scopes(
        db,
        environment_id=payload.environment_id,
        session_id=payload.session_id,
        file_variables=payload.file_variables,
        request_variables=payload.request_variables,
        store=store,
    )
    return ResolveResponse(
        text=substitute(payload.text, scopes),
        variables=extract_variables(payload.text),
    )


@router.get("/lookup/{name}", response_model=VariableSourceResponse)
def lookup_variable(
    name: str,
    session_id: str | None = None,
    environment_id: int | None = None,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
):
    """Report the raw value of a variable and which scope it comes from."""
    scopes = build_scopes(db, environment_id=environment_id, session_id=session_id, store=store)
    return VariableSourceResponse(
        name=name,
        value=scopes.lookup(name),
        source=scopes.source_of(name),
    )


@router.post("/extract", response_model=ExtractResponse)
def extract_value(payload: ExtractRequest):
    """Extract a value from a response by JSONPath or header name."""
    response = ResponseSnapshot(
        headers=payload.headers,
        body=payload.body.encode("utf-8"),
    )
    return ExtractResponse(
        value=extract_response_variable(response, payload.path, payload.content_type),
    )


@router.post("/captures/parse", response_model=ParseCapturesResponse)
def parse_captures(payload: ParseCapturesRequest):
    """Parse the ``# @capture`` lines in a block of text."""
    return ParseCapturesResponse(directives=parse_capture_directives(payload.text))


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    """List the variables captured so far in a session."""
    return SessionResponse(session_id=session_id, variables=store.get(session_id))


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def clear_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Forget a session's captured variables."""
    if not store.clear(session_id):
        raise ResourceNotFoundError("Session", session_id)
    return None
