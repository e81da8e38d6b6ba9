"""
Models package for the environment store.

Exports all SQLAlchemy models for database operations.
"""

from .environment import Environment, Variable

__all__ = [
    "Environment",
    "Variable",
]
