"""
Pydantic schemas for the environment store.

Variable keys are the names request text refers to as ``{{key}}``, so they
must be usable inside a placeholder: no whitespace, no braces, and no leading
``$`` (that prefix is reserved for built-in functions).
"""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


VariableKey = Annotated[str, Field(min_length=1, max_length=255, pattern=r'^[^\s{}$][^\s{}]*$')]
VariableValue = Annotated[str, Field(max_length=4000)]
EnvironmentName = Annotated[str, Field(min_length=1, max_length=255)]


class VariableCreate(BaseModel):
    """A key/value pair to store in an environment."""
    key: VariableKey
    value: VariableValue


class VariableUpdate(BaseModel):
    """Partial variable update; omitted fields keep their stored value."""
    key: VariableKey | None = None
    value: VariableValue | None = None


class VariableResponse(VariableCreate):
    id: int
    environment_id: int

    model_config = ConfigDict(from_attributes=True)


class EnvironmentCreate(BaseModel):
    """
    A new environment.

    ``is_shared`` environments feed the shared scope and can never be the
    active environment.
    """
    name: EnvironmentName
    is_active: bool = False
    is_shared: bool = False
    variables: list[VariableCreate] = []


class EnvironmentUpdate(BaseModel):
    """Partial environment update; omitted fields keep their stored value."""
    name: EnvironmentName | None = None
    is_active: bool | None = None
    is_shared: bool | None = None


class EnvironmentResponse(BaseModel):
    id: int
    name: str
    is_active: bool
    is_shared: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EnvironmentWithVariables(EnvironmentResponse):
    """An environment together with all of its variables."""
    variables: list[VariableResponse] = []
