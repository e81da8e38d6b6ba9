"""
Request execution API routes.

Resolves placeholders against the session, request and environment scopes,
sends the request and records values captured from the response in the
session for later requests.
"""

from typing import Union

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.execute import ExecuteRequest, ExecuteResponse, ExecuteErrorResponse
from ..services.http_executor import build_scopes, execute_request
from ..services.session_store import SessionStore, get_session_store


router = APIRouter(prefix="/api/execute", tags=["execute"])

ERROR_STATUS_CODES = {
    "timeout": status.HTTP_504_GATEWAY_TIMEOUT,
    "network_error": status.HTTP_502_BAD_GATEWAY,
    "invalid_url": status.HTTP_400_BAD_REQUEST,
}


@router.post(
    "",
    response_model=Union[ExecuteResponse, ExecuteErrorResponse],
    responses={
        200: {"model": ExecuteResponse, "description": "Successful execution"},
        400: {"model": ExecuteErrorResponse, "description": "Invalid URL"},
        502: {"model": ExecuteErrorResponse, "description": "Network error"},
        504: {"model": ExecuteErrorResponse, "description": "Request timeout"},
    }
)
async def execute(
    request: ExecuteRequest,
    environment_id: int | None = None,
    session_id: str = "default",
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
):
    """
    Execute an HTTP request.

    Args:
        request: The request to execute; may contain placeholders and
            ``# @capture`` lines
        environment_id: Environment to resolve against instead of the active one
        session_id: Session whose captured variables are used and extended

    Returns:
        ExecuteResponse with the response details and captured variables

    Raises:
        HTTPException: 400/502/504 when the request could not be sent
    """
    scopes = build_scopes(
        db,
        environment_id=environment_id,
        session_id=session_id,
        file_variables=request.file_variables,
        store=store,
    )

    result = await execute_request(
        request=request,
        scopes=scopes,
        session_id=session_id,
        store=store,
    )

    if isinstance(result, ExecuteErrorResponse):
        raise HTTPException(
            status_code=ERROR_STATUS_CODES.get(result.error_type, status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail={"error": result.error, "error_type": result.error_type, "details": result.details}
        )

    return result
