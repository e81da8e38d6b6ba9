"""
Environment management API routes.

Provides CRUD operations for environments and their variables. The active
environment supplies the environment scope and every shared environment
supplies the shared scope used when resolving {{variable}} placeholders.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import APIException, ResourceNotFoundError
from ..models.environment import Environment, Variable
from ..schemas.environment import (
    EnvironmentCreate,
    EnvironmentUpdate,
    EnvironmentWithVariables,
    VariableCreate,
    VariableUpdate,
    VariableResponse,
)
from ..services.environment_loader import load_environments
from ..services.scopes import Environments


router = APIRouter(prefix="/api/environments", tags=["environments"])


def _get_environment(db: Session, environment_id: int) -> Environment:
    environment = db.query(Environment).filter(Environment.id == environment_id).first()
    if environment is None:
        raise ResourceNotFoundError("Environment", environment_id)
    return environment


def _get_variable(db: Session, variable_id: int) -> Variable:
    variable = db.query(Variable).filter(Variable.id == variable_id).first()
    if variable is None:
        raise ResourceNotFoundError("Variable", variable_id)
    return variable


def _deactivate_others(db: Session, environment_id: int | None = None) -> None:
    query = db.query(Environment).filter(Environment.is_active == True)
    if environment_id is not None:
        query = query.filter(Environment.id != environment_id)
    query.update({"is_active": False})


def _reject_shared_active(is_active: bool | None, is_shared: bool | None) -> None:
    if is_active and is_shared:
        raise APIException(
            detail="A shared environment cannot be the active environment",
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="BAD_REQUEST"
        )


# Environment endpoints

@router.post("", response_model=EnvironmentWithVariables, status_code=status.HTTP_201_CREATED)
def create_environment(environment_data: EnvironmentCreate, db: Session = Depends(get_db)):
    """
    Create a new environment with optional initial variables.

    Creating an active environment deactivates all others.
    """
    _reject_shared_active(environment_data.is_active, environment_data.is_shared)
    if environment_data.is_active:
        _deactivate_others(db)

    db_environment = Environment(
        name=environment_data.name,
        is_active=environment_data.is_active,
        is_shared=environment_data.is_shared,
        variables=[
            Variable(key=var_data.key, value=var_data.value)
            for var_data in environment_data.variables
        ],
    )
    db.add(db_environment)
    db.commit()
    db.refresh(db_environment)
    return db_environment


@router.get("", response_model=list[EnvironmentWithVariables])
def list_environments(db: Session = Depends(get_db)):
    """List all environments with their variables."""
    return db.query(Environment).order_by(Environment.id).all()


@router.get("/resolved", response_model=Environments)
def get_resolved_environments(environment_id: int | None = None, db: Session = Depends(get_db)):
    """
    Return the environments snapshot used for resolution.

    Args:
        environment_id: Environment to treat as active, or None for the stored one
    """
    return load_environments(db, environment_id)


@router.get("/{environment_id}", response_model=EnvironmentWithVariables)
def get_environment(environment_id: int, db: Session = Depends(get_db)):
    """Get an environment by ID with all its variables."""
    return _get_environment(db, environment_id)


@router.put("/{environment_id}", response_model=EnvironmentWithVariables)
def update_environment(
    environment_id: int,
    environment_data: EnvironmentUpdate,
    db: Session = Depends(get_db)
):
    """
    Update an existing environment; only provided fields change.

    Setting is_active deactivates all other environments.
    """
    db_environment = _get_environment(db, environment_id)
    update_data = environment_data.model_dump(exclude_unset=True)

    _reject_shared_active(
        update_data.get("is_active", db_environment.is_active),
        update_data.get("is_shared", db_environment.is_shared),
    )
    if update_data.get("is_active") is True:
        _deactivate_others(db, environment_id)

    for field, value in update_data.items():
        setattr(db_environment, field, value)

    db.commit()
    db.refresh(db_environment)
    return db_environment


@router.delete("/{environment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_environment(environment_id: int, db: Session = Depends(get_db)):
    """Delete an environment and, by cascade, its variables."""
    db.delete(_get_environment(db, environment_id))
    db.commit()
    return None


@router.post("/{environment_id}/activate", response_model=EnvironmentWithVariables)
def activate_environment(environment_id: int, db: Session = Depends(get_db)):
    """Make an environment the only active one."""
    db_environment = _get_environment(db, environment_id)
    _reject_shared_active(True, db_environment.is_shared)

    _deactivate_others(db, environment_id)
    db_environment.is_active = True
    db.commit()
    db.refresh(db_environment)
    return db_environment


# Variable endpoints

@router.post("/{environment_id}/variables", response_model=VariableResponse, status_code=status.HTTP_201_CREATED)
def add_variable(
    environment_id: int,
    variable_data: VariableCreate,
    db: Session = Depends(get_db)
):
    """Add a variable to an environment."""
    _get_environment(db, environment_id)

    db_variable = Variable(
        environment_id=environment_id,
        key=variable_data.key,
        value=variable_data.value,
    )
    db.add(db_variable)
    db.commit()
    db.refresh(db_variable)
    return db_variable


@router.put("/variables/{variable_id}", response_model=VariableResponse)
def update_variable(
    variable_id: int,
    variable_data: VariableUpdate,
    db: Session = Depends(get_db)
):
    """Update a variable's key and/or value."""
    db_variable = _get_variable(db, variable_id)

    for field, value in variable_data.model_dump(exclude_unset=True).items():
        setattr(db_variable, field, value)

    db.commit()
    db.refresh(db_variable)
    return db_variable


@router.delete("/variables/{variable_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_variable(variable_id: int, db: Session = Depends(get_db)):
    """Delete a variable by ID."""
    db.delete(_get_variable(db, variable_id))
    db.commit()
    return None
