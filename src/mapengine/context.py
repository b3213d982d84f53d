"""Parent-scoped dependency lookup.

A ContextScope is a node in a tree.  A component provides itself (usually as
a pending task) under a ContextKey in its scope; children look keys up and
the search walks towards the root.  This lets a marker find its enclosing
layer and map without every call site threading references through.

    root   : Maps.ApiProvider
      map  : Maps.Map
        lyr: Maps.MarkerLayer
          m: Maps.Marker  -> lookup(MAP) finds the map two scopes up

ContextRegistry indexes scopes by id for callers that only hold an id.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from mapengine.errors import MissingDependencyError
from mapengine.ids import use_id


class ContextKey(str, Enum):
    API_PROVIDER = "Maps.ApiProvider"
    MAP = "Maps.Map"
    MARKER_LAYER = "Maps.MarkerLayer"
    POLYGON_LAYER = "Maps.PolygonLayer"
    MARKER = "Maps.Marker"
    POLYGON = "Maps.Polygon"


class ContextScope:
    """A lookup scope with an optional parent."""

    def __init__(self, scope_id: str | None = None, parent: "ContextScope | None" = None) -> None:
        self._scope_id = scope_id or use_id("scope")
        self._parent = parent
        self._values: dict[ContextKey, Any] = {}

    @property
    def scope_id(self) -> str:
        return self._scope_id

    @property
    def parent(self) -> "ContextScope | None":
        return self._parent

    def child(self, scope_id: str | None = None) -> "ContextScope":
        return ContextScope(scope_id, parent=self)

    def provide(self, key: ContextKey, value: Any) -> Any:
        """Register ``value`` under ``key`` in this scope and return it.

        Raises:
            ValueError: If this scope already provides ``key``.
        """
        key = ContextKey(key)
        if key in self._values:
            raise ValueError(f"Scope '{self._scope_id}' already provides '{key.value}'")
        self._values[key] = value
        return value

    def has(self, key: ContextKey) -> bool:
        try:
            self.lookup(key)
        except MissingDependencyError:
            return False
        return True

    def lookup(self, key: ContextKey) -> Any:
        """Find ``key`` in this scope or the nearest ancestor providing it.

        Raises:
            MissingDependencyError: If no scope on the path provides it.
        """
        key = ContextKey(key)
        scope: ContextScope | None = self
        while scope is not None:
            if key in scope._values:
                return scope._values[key]
            scope = scope._parent
        raise MissingDependencyError(key.value, self._scope_id)


class ContextRegistry:
    """Scopes addressable by id."""

    def __init__(self) -> None:
        self._scopes: dict[str, ContextScope] = {}

    def create_scope(self, scope_id: str | None = None, parent_id: str | None = None) -> ContextScope:
        """Create a scope, nested under ``parent_id`` when given.

        Raises:
            KeyError: If ``parent_id`` is unknown.
            ValueError: If ``scope_id`` is already taken.
        """
        parent = self.scope(parent_id) if parent_id is not None else None
        scope = ContextScope(scope_id, parent=parent)
        if scope.scope_id in self._scopes:
            raise ValueError(f"Scope already exists: {scope.scope_id}")
        self._scopes[scope.scope_id] = scope
        return scope

    def scope(self, scope_id: str) -> ContextScope:
        scope = self._scopes.get(scope_id)
        if scope is None:
            raise KeyError(f"Scope not found: {scope_id}")
        return scope

    def remove_scope(self, scope_id: str) -> bool:
        return self._scopes.pop(scope_id, None) is not None

    def lookup(self, scope_id: str, key: ContextKey) -> Any:
        return self.scope(scope_id).lookup(key)
