"""
Pydantic schemas package.

Exports all schemas for API request/response validation.
"""

from .environment import (
    VariableCreate,
    VariableUpdate,
    VariableResponse,
    EnvironmentCreate,
    EnvironmentUpdate,
    EnvironmentResponse,
    EnvironmentWithVariables,
)

from .execute import (
    HttpMethod,
    ExecuteRequest,
    ExecuteResponse,
    ExecuteErrorResponse,
)

from .variables import (
    ResolveRequest,
    ResolveResponse,
    VariableSourceResponse,
    ExtractRequest,
    ExtractResponse,
    ParseCapturesRequest,
    ParseCapturesResponse,
    SessionResponse,
)

__all__ = [
    # Environment schemas
    "VariableCreate",
    "VariableUpdate",
    "VariableResponse",
    "EnvironmentCreate",
    "EnvironmentUpdate",
    "EnvironmentResponse",
    "EnvironmentWithVariables",
    # Execute schemas
    "HttpMethod",
    "ExecuteRequest",
    "ExecuteResponse",
    "ExecuteErrorResponse",
    # Resolution schemas
    "ResolveRequest",
    "ResolveResponse",
    "VariableSourceResponse",
    "ExtractRequest",
    "ExtractResponse",
    "ParseCapturesRequest",
    "ParseCapturesResponse",
    "SessionResponse",
]
