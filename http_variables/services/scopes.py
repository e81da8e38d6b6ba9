"""
Variable scope model.

A ScopeModel is an ordered, immutable snapshot of the four variable sources
consulted when a ``{{name}}`` placeholder is resolved:

1. request-captured: values extracted from earlier responses in the session
2. file-local: variables declared in the current document
3. active-environment: variables of the selected named environment
4. shared: variables available regardless of the active environment

Lookup returns the first source that defines the name.
"""

from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping

from pydantic import BaseModel


class ScopeSource(str, Enum):
    """Variable sources, listed in lookup order."""
    REQUEST = "request"
    FILE = "file"
    ENVIRONMENT = "environment"
    SHARED = "shared"


SCOPE_ORDER = (
    ScopeSource.REQUEST,
    ScopeSource.FILE,
    ScopeSource.ENVIRONMENT,
    ScopeSource.SHARED,
)


class NamedEnvironment(BaseModel):
    """A named set of variables (e.g. dev, staging, production)."""
    name: str
    variables: dict[str, str] = {}


class Environments(BaseModel):
    """
    All loaded environments plus the shared variables.

    Only the active environment contributes to resolution; shared variables
    apply whether or not an environment is active.
    """
    environments: dict[str, NamedEnvironment] = {}
    shared: dict[str, str] = {}
    active: str | None = None

    def add_environment(self, environment: NamedEnvironment) -> None:
        self.environments[environment.name] = environment

    def set_active(self, name: str) -> bool:
        """Activate an environment by name; returns False if it does not exist."""
        if name not in self.environments:
            return False
        self.active = name
        return True

    def get_active(self) -> NamedEnvironment | None:
        if self.active is None:
            return None
        return self.environments.get(self.active)

    def active_variables(self) -> dict[str, str]:
        active = self.get_active()
        return dict(active.variables) if active else {}

    def get_variable(self, name: str) -> str | None:
        """Resolve from the active environment, falling back to shared."""
        active = self.get_active()
        if active is not None and name in active.variables:
            return active.variables[name]
        return self.shared.get(name)


class ScopeModel:
    """
    Immutable snapshot of the four variable sources.

    Each source is copied on construction, so later changes to the mappings
    passed in never show through a snapshot that is being resolved.
    """

    __slots__ = ("_sources",)

    def __init__(
        self,
        request: Mapping[str, str] | None = None,
        file: Mapping[str, str] | None = None,
        environment: Mapping[str, str] | None = None,
        shared: Mapping[str, str] | None = None,
    ):
        sources = {
            ScopeSource.REQUEST: request,
            ScopeSource.FILE: file,
            ScopeSource.ENVIRONMENT: environment,
            ScopeSource.SHARED: shared,
        }
        self._sources = tuple(
            (source, MappingProxyType(dict(sources[source] or {})))
            for source in SCOPE_ORDER
        )

    @classmethod
    def from_environments(
        cls,
        environments: Environments | None,
        file_variables: Mapping[str, str] | None = None,
        request_variables: Mapping[str, str] | None = None,
    ) -> "ScopeModel":
        """Build a snapshot from loaded environments and document/session maps."""
        return cls(
            request=request_variables,
            file=file_variables,
            environment=environments.active_variables() if environments else None,
            shared=environments.shared if environments else None,
        )

    def source(self, source: ScopeSource) -> Mapping[str, str]:
        """Read-only view of one source."""
        for candidate, values in self._sources:
            if candidate is source:
                return values
        raise KeyError(source)

    def lookup(self, name: str) -> str | None:
        """Return the value from the highest-priority source defining name."""
        for _, values in self._sources:
            if name in values:
                return values[name]
        return None

    def source_of(self, name: str) -> ScopeSource | None:
        """Return which source a name would resolve from."""
        for source, values in self._sources:
            if name in values:
                return source
        return None

    def with_captured(self, values: Mapping[str, str]) -> "ScopeModel":
        """Return a new snapshot with extra request-captured values."""
        request = dict(self.source(ScopeSource.REQUEST))
        request.update(values)
        return ScopeModel(
            request=request,
            file=self.source(ScopeSource.FILE),
            environment=self.source(ScopeSource.ENVIRONMENT),
            shared=self.source(ScopeSource.SHARED),
        )

    def names(self) -> Iterator[str]:
        """All defined names, each once, in precedence order."""
        seen: set[str] = set()
        for _, values in self._sources:
            for name in values:
                if name not in seen:
                    seen.add(name)
                    yield name

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.source_of(name) is not None

    def __repr__(self) -> str:
        sizes = ", ".join(f"{source.value}={len(values)}" for source, values in self._sources)
        return f"ScopeModel({sizes})"
