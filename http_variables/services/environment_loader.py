"""
Build resolution snapshots from the environment store.
"""

from sqlalchemy.orm import Session

from ..exceptions import ResourceNotFoundError
from ..models.environment import Environment
from .scopes import Environments, NamedEnvironment


def load_environments(db: Session, environment_id: int | None = None) -> Environments:
    """
    Load all environments and the shared variables from the database.

    Args:
        db: Database session
        environment_id: Environment to treat as active for this snapshot,
            or None to use the stored active environment

    Returns:
        Environments snapshot; environments are keyed by name

    Raises:
        ResourceNotFoundError: If environment_id does not exist
    """
    environments = Environments()
    active_name: str | None = None

    for env in db.query(Environment).order_by(Environment.id).all():
        variables = {var.key: var.value for var in env.variables}
        if env.is_shared:
            environments.shared.update(variables)
            continue

        environments.add_environment(NamedEnvironment(name=env.name, variables=variables))
        if environment_id is not None:
            if env.id == environment_id:
                active_name = env.name
        elif env.is_active:
            active_name = env.name

    if environment_id is not None and active_name is None:
        raise ResourceNotFoundError("Environment", environment_id)

    if active_name is not None:
        environments.set_active(active_name)
    return environments
