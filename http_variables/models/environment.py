"""
Environment and Variable models for the environment store.

Each environment is a named set of variables. At most one environment is
active at a time; environments flagged as shared contribute variables that
apply whether or not any environment is active.
"""

from datetime import datetime, timezone
from typing import List

from sqlalchemy import String, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Environment(Base):
    """
    SQLAlchemy model for environments.

    Deleting an environment cascades to all its variables.

    Attributes:
        id: Unique identifier for the environment
        name: Human-readable name (e.g. dev, staging, production)
        is_active: Whether this environment is currently selected
        is_shared: Whether its variables form the shared scope
        created_at: Timestamp when the environment was created
        updated_at: Timestamp when the environment was last updated
        variables: List of variables in this environment
    """
    __tablename__ = "environments"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    is_shared: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=_utcnow, onupdate=_utcnow)

    variables: Mapped[List["Variable"]] = relationship(
        "Variable",
        back_populates="environment",
        cascade="all, delete-orphan",
        passive_deletes=True
    )


class Variable(Base):
    """
    SQLAlchemy model for environment variables.

    Variables are key-value pairs referenced from request text as
    ``{{key}}``. Keys are case-sensitive.
    """
    __tablename__ = "variables"

    id: Mapped[int] = mapped_column(primary_key=True)
    environment_id: Mapped[int] = mapped_column(
        ForeignKey("environments.id", ondelete="CASCADE")
    )
    key: Mapped[str] = mapped_column(String(255))
    value: Mapped[str] = mapped_column(String(4000))

    environment: Mapped["Environment"] = relationship(
        "Environment",
        back_populates="variables"
    )
