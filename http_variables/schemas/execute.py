"""
Pydantic schemas for request execution.

Defines schemas for executing requests and returning execution results,
including the variables captured from the response.
"""

from typing import Any, Literal

from pydantic import BaseModel


# HTTP methods supported by the executor
HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


class ExecuteRequest(BaseModel):
    """
    Schema for executing a request.

    ``url``, header names and values, query params and ``body`` may contain
    placeholders. ``captures`` holds the request's ``# @capture`` lines.
    """
    method: HttpMethod
    url: str
    headers: dict[str, str] = {}
    query_params: dict[str, str] = {}
    body: str | None = None
    file_variables: dict[str, str] = {}
    captures: str = ""


class ExecuteResponse(BaseModel):
    """
    Schema for request execution response.

    Contains all response details including status, headers, body,
    timing information, and the variables captured into the session.
    """
    status_code: int
    status_text: str
    url: str
    headers: dict[str, str]
    body: str | None
    body_json: Any | None = None
    response_time_ms: int
    response_size: int
    captured: dict[str, str] = {}


class ExecuteErrorResponse(BaseModel):
    """Schema for execution error response."""
    error: str
    error_type: Literal["network_error", "timeout", "invalid_url"]
    details: str | None = None
