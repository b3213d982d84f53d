"""Error taxonomy for the map engine.

Three failure kinds reach callers:

- LibraryLoadError:       a named SDK library failed to import
- PreconditionError:      a map, layer or feature was created before its
                          parent (or the library it needs) was ready
- FeatureValidationError: a feature's attribute payload did not match the
                          schema declared for it

Nothing in the engine retries or recovers from these locally.
"""

from __future__ import annotations

from typing import Any


class MapEngineError(Exception):
    """Base class for every error raised by the map engine."""


class LibraryLoadError(MapEngineError):
    """Raised when one or more SDK libraries fail to import."""

    def __init__(self, errors: dict[str, BaseException]) -> None:
        self.errors = dict(errors)
        self.libraries = sorted(self.errors)
        details = ", ".join(f"{name}: {exc}" for name, exc in self.errors.items())
        super().__init__(f"Failed to load map libraries [{details}]")


class PreconditionError(MapEngineError):
    """Raised when a component is constructed before its dependencies exist."""


class MissingDependencyError(PreconditionError):
    """Raised when a context lookup finds nothing registered for a key."""

    def __init__(self, key: str, scope_id: str) -> None:
        self.key = key
        self.scope_id = scope_id
        super().__init__(
            f"No '{key}' available from scope '{scope_id}' or any of its parents"
        )


class FeatureValidationError(MapEngineError):
    """Raised when feature attributes do not match the declared schema."""

    def __init__(
        self,
        layer_name: str,
        layer_kind: str,
        errors: list[dict[str, Any]],
    ) -> None:
        self.layer_name = layer_name
        self.layer_kind = layer_kind
        self.errors = errors
        fields = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ())) or '<root>'}: {err.get('msg', '')}"
            for err in errors
        )
        super().__init__(
            f"Invalid attributes for feature in {layer_kind} layer "
            f"'{layer_name}': {fields}"
        )
