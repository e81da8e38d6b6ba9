"""
Exception classes and error handling for the variable resolution service.

Resolution failures share one closed taxonomy (``VariableError`` and its six
subclasses). The same errors back both diagnostics and execution failures, so
the HTTP layer translates them into consistent JSON error responses.
"""

from enum import Enum
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError


class ErrorKind(str, Enum):
    """The closed set of variable resolution failure kinds."""
    UNDEFINED_VARIABLE = "UNDEFINED_VARIABLE"
    INVALID_SYNTAX = "INVALID_SYNTAX"
    INVALID_OFFSET = "INVALID_OFFSET"
    ENV_VAR_NOT_FOUND = "ENV_VAR_NOT_FOUND"
    DOTENV_ERROR = "DOTENV_ERROR"
    CIRCULAR_REFERENCE = "CIRCULAR_REFERENCE"


class VariableError(Exception):
    """
    Base class for all variable resolution failures.

    Only the six subclasses below are ever raised. Callers that need to
    branch on the failure can match on the subclass or on ``kind``.
    """
    kind: ErrorKind
    prefix: str = ""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"{self.prefix}: {detail}")

    @property
    def error_code(self) -> str:
        return self.kind.value


class UndefinedVariable(VariableError):
    """A variable (or function) name could not be resolved in any source."""
    kind = ErrorKind.UNDEFINED_VARIABLE
    prefix = "Undefined variable"

    @property
    def name(self) -> str:
        return self.detail


class InvalidSyntax(VariableError):
    """Malformed arguments, unknown formats or unsupported extraction paths."""
    kind = ErrorKind.INVALID_SYNTAX
    prefix = "Invalid syntax"


class InvalidOffset(VariableError):
    """A ``<signed-int> <unit>`` time offset could not be parsed."""
    kind = ErrorKind.INVALID_OFFSET
    prefix = "Invalid offset"


class EnvVarNotFound(VariableError):
    """A process or dotenv variable is not set."""
    kind = ErrorKind.ENV_VAR_NOT_FOUND
    prefix = "Environment variable not found"

    @property
    def name(self) -> str:
        return self.detail


class DotenvError(VariableError):
    """The .env file could not be found or read."""
    kind = ErrorKind.DOTENV_ERROR
    prefix = "Dotenv error"


class CircularReference(VariableError):
    """A variable refers back to itself, or expansion nests too deeply."""
    kind = ErrorKind.CIRCULAR_REFERENCE
    prefix = "Circular reference"


def unsupported(feature: str) -> VariableError:
    """
    Build the error raised for recognized but unimplemented features.

    There is no dedicated "unsupported" kind; these surface as InvalidSyntax.
    Call sites go through this function so the mapping lives in one place.
    """
    return InvalidSyntax(f"{feature} is not yet implemented")


class APIException(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        detail: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str | None = None
    ):
        self.detail = detail
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(detail)


class ResourceNotFoundError(APIException):
    """Exception raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            detail=f"{resource_type} with id {resource_id} not found",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND"
        )


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handler for custom API exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_code": exc.error_code}
    )


async def variable_exception_handler(request: Request, exc: VariableError) -> JSONResponse:
    """Handler for variable resolution and extraction failures."""
    if isinstance(exc, UndefinedVariable):
        status_code = status.HTTP_404_NOT_FOUND
    else:
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_code": exc.error_code}
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    errors = exc.errors()
    error_messages = []
    for error in errors:
        loc = " -> ".join(str(l) for l in error["loc"])
        msg = error["msg"]
        error_messages.append(f"{loc}: {msg}")

    detail = "; ".join(error_messages) if error_messages else "Validation error"

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": detail, "error_code": "VALIDATION_ERROR"}
    )


async def sqlalchemy_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Handler for SQLAlchemy database errors."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Database error occurred", "error_code": "DATABASE_ERROR"}
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(VariableError, variable_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
