"""
HTTP execution service for sending HTTP requests.

This service resolves placeholders in a request, sends it using httpx,
extracts the request's capture directives from the response and records
the captured values in the session, so later requests can use them.
"""

import json
import logging
import time
from typing import Any

import httpx
from sqlalchemy.orm import Session

from ..config import get_settings
from ..schemas.execute import ExecuteRequest, ExecuteResponse, ExecuteErrorResponse
from .builtin_functions import BuiltinFunctions
from .capture import parse_capture_directives
from .environment_loader import load_environments
from .response_extractor import ResponseSnapshot, apply_captures
from .scopes import ScopeModel
from .session_store import SessionStore, session_store
from .variable_substitution import substitute, substitute_dict


logger = logging.getLogger(__name__)


def build_scopes(
    db: Session,
    environment_id: int | None = None,
    session_id: str | None = None,
    file_variables: dict[str, str] | None = None,
    request_variables: dict[str, str] | None = None,
    store: SessionStore = session_store,
) -> ScopeModel:
    """
    Take a resolution snapshot for one request.

    Args:
        db: Database session for the environment store
        environment_id: Specific environment ID, or None to use the active environment
        session_id: Session whose captured values form the request scope
        file_variables: Variables declared in the request's document
        request_variables: Extra request-scope values layered over the session's
        store: Session store holding captured values

    Returns:
        Immutable ScopeModel for substitution
    """
    captured = store.get(session_id) if session_id is not None else {}
    if request_variables:
        captured.update(request_variables)

    return ScopeModel.from_environments(
        load_environments(db, environment_id),
        file_variables=file_variables,
        request_variables=captured,
    )


def apply_variable_substitution(
    request: ExecuteRequest,
    scopes: ScopeModel,
    functions: BuiltinFunctions | None = None,
) -> ExecuteRequest:
    """
    Resolve placeholders in every part of a request.

    Args:
        request: The request to process
        scopes: Variable snapshot to resolve against
        functions: Built-in function resolver

    Returns:
        New request with URL, header names and values, query params and
        body substituted

    Raises:
        VariableError: If any placeholder cannot be resolved
    """
    headers = {
        substitute(key, scopes, functions): value
        for key, value in substitute_dict(request.headers, scopes, functions).items()
    }

    return request.model_copy(update={
        "url": substitute(request.url, scopes, functions),
        "headers": headers,
        "query_params": substitute_dict(request.query_params, scopes, functions),
        "body": substitute(request.body, scopes, functions) if request.body else request.body,
    })


def parse_json_body(body: str | None, content_type: str | None) -> Any | None:
    """
    Try to parse response body as JSON if content type indicates JSON.

    Returns:
        Parsed JSON object or None if not JSON or parsing fails
    """
    if not body or not content_type:
        return None

    if "json" in content_type.lower():
        try:
            return json.loads(body)
        except json.JSONDecodeError:
            return None

    return None


async def execute_request(
    request: ExecuteRequest,
    scopes: ScopeModel,
    session_id: str = "default",
    store: SessionStore = session_store,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    functions: BuiltinFunctions | None = None,
) -> ExecuteResponse | ExecuteErrorResponse:
    """
    Execute an HTTP request and capture values from its response.

    Args:
        request: The request to execute; may contain placeholders
        scopes: Variable snapshot to resolve placeholders against
        session_id: Session that receives captured values
        store: Session store to record captures in
        timeout: Request timeout in seconds (defaults to the configured one)
        transport: Optional httpx transport (used by tests)
        functions: Built-in function resolver

    Returns:
        ExecuteResponse on success, ExecuteErrorResponse on transport failure

    Raises:
        VariableError: If substitution or a capture directive fails
    """
    if timeout is None:
        timeout = get_settings().request_timeout

    request = apply_variable_substitution(request, scopes, functions)
    directives = parse_capture_directives(request.captures)

    try:
        start_time = time.perf_counter()

        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                params=request.query_params or None,
                content=request.body,
            )

        response_time_ms = int((time.perf_counter() - start_time) * 1000)

    except httpx.TimeoutException:
        logger.warning("Request to %s timed out after %ss", request.url, timeout)
        return ExecuteErrorResponse(
            error="Request timed out",
            error_type="timeout",
            details=f"Request exceeded {timeout} seconds timeout"
        )
    except httpx.ConnectError as e:
        logger.warning("Failed to connect to %s: %s", request.url, e)
        return ExecuteErrorResponse(
            error="Failed to connect to server",
            error_type="network_error",
            details=str(e)
        )
    except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
        return ExecuteErrorResponse(
            error="Invalid URL",
            error_type="invalid_url",
            details=str(e)
        )
    except httpx.HTTPError as e:
        logger.warning("HTTP error for %s: %s", request.url, e)
        return ExecuteErrorResponse(
            error="HTTP error occurred",
            error_type="network_error",
            details=str(e)
        )

    response_headers = dict(response.headers)
    snapshot = ResponseSnapshot(
        status_code=response.status_code,
        headers=response_headers,
        body=response.content,
    )

    captured = apply_captures(snapshot, directives)
    store.record(session_id, captured)

    response_body = response.text
    return ExecuteResponse(
        status_code=response.status_code,
        status_text=response.reason_phrase or "",
        url=str(response.request.url),
        headers=response_headers,
        body=response_body,
        body_json=parse_json_body(response_body, response_headers.get("content-type")),
        response_time_ms=response_time_ms,
        response_size=len(response.content),
        captured=captured,
    )
