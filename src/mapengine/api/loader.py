"""LibraryLoader — imports named SDK libraries exactly once per process.

Each library moves through LoadState:

    NOT_LOADED -> LOADING -> LOADED
                          -> ERROR   (terminal for the process lifetime)

``load_libraries`` only issues an import for names still NOT_LOADED.  Names
already LOADING join the in-flight import, names in ERROR re-raise the stored
failure, and LOADED names are skipped.

The loader is process-scoped: ``get_loader()`` returns the shared instance,
and ``reset_loader()`` swaps in a fresh one (used by tests).  The first
``init()`` call fixes the loader options for the life of that instance.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from loguru import logger
from pydantic import BaseModel, Field

from mapengine.config import settings
from mapengine.errors import LibraryLoadError, PreconditionError
from mapengine.sdk.base import MapSDK


class LoadState(str, Enum):
    """Load status of a single SDK library."""

    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


KNOWN_LIBRARIES = (
    "core",
    "maps",
    "places",
    "geocoding",
    "routes",
    "marker",
    "geometry",
    "elevation",
    "streetView",
    "journeySharing",
    "drawing",
    "visualization",
)


class LoaderOptions(BaseModel):
    """Options passed to the SDK loader on first initialization."""

    api_key: str = ""
    version: str = "weekly"
    libraries: list[str] = Field(default_factory=list)
    region: Optional[str] = None
    language: Optional[str] = None
    auth_referrer_policy: Optional[str] = None

    @classmethod
    def from_settings(cls, **overrides: Any) -> "LoaderOptions":
        """Build options from MAPENGINE_* settings, applying ``overrides``."""
        values: dict[str, Any] = {
            "api_key": settings.maps_api_key,
            "version": settings.maps_version,
            "libraries": list(settings.maps_libraries),
            "region": settings.maps_region,
            "language": settings.maps_language,
            "auth_referrer_policy": settings.maps_auth_referrer_policy,
        }
        values.update(overrides)
        return cls(**values)

    def identity(self) -> dict[str, Any]:
        """Options that must not change after init (everything but libraries)."""
        return self.model_dump(include=set(LoaderOptions.model_fields) - {"libraries"})


class LibraryLoader:
    """Loads SDK libraries once each and tracks their LoadState."""

    def __init__(self) -> None:
        self._clear()

    def _clear(self) -> None:
        self._options: LoaderOptions | None = None
        self._sdk: MapSDK | None = None
        self._states: dict[str, LoadState] = {name: LoadState.NOT_LOADED for name in KNOWN_LIBRARIES}
        self._tasks: dict[str, asyncio.Task] = {}
        self._errors: dict[str, BaseException] = {}

    def init(self, options: LoaderOptions, sdk: MapSDK) -> None:
        """Initialize once.  Later calls only warn if their options differ."""
        if self._options is not None:
            if options.identity() != self._options.identity():
                logger.warning(
                    "LibraryLoader already initialized with different options; "
                    f"new options ignored. initial={self._options.identity()} "
                    f"new={options.identity()}"
                )
            return
        self._options = options
        self._sdk = sdk
        logger.info(f"LibraryLoader initialized (version={options.version})")

    @property
    def initialized(self) -> bool:
        return self._options is not None

    @property
    def options(self) -> LoaderOptions | None:
        return self._options

    @property
    def sdk(self) -> MapSDK | None:
        return self._sdk

    @property
    def states(self) -> Mapping[str, LoadState]:
        return MappingProxyType(self._states)

    def state_of(self, name: str) -> LoadState:
        return self._states.get(name, LoadState.NOT_LOADED)

    def error_for(self, name: str) -> BaseException | None:
        return self._errors.get(name)

    @property
    def loaded_libraries(self) -> list[str]:
        return [name for name, state in self._states.items() if state is LoadState.LOADED]

    async def load_libraries(self, names: Iterable[str]) -> None:
        """Load every library in ``names``, waiting until all have settled.

        Raises:
            PreconditionError: If init() has not been called.
            LibraryLoadError: If any requested library failed (now or in an
                earlier call).  Libraries that did load stay LOADED.
        """
        if self._sdk is None:
            raise PreconditionError("LibraryLoader.init() must be called before load_libraries()")

        requested = list(dict.fromkeys(names))
        if not requested:
            return

        pending: list[tuple[str, asyncio.Task]] = []
        for name in requested:
            state = self.state_of(name)
            if state is LoadState.LOADED:
                continue
            if state is LoadState.NOT_LOADED:
                self._states[name] = LoadState.LOADING
                self._tasks[name] = asyncio.get_running_loop().create_task(self._import(name))
            pending.append((name, self._tasks[name]))

        # shield: a cancelled caller must not cancel an import other callers share
        results = await asyncio.gather(
            *(asyncio.shield(task) for _, task in pending), return_exceptions=True
        )
        failures = {
            name: result
            for (name, _), result in zip(pending, results)
            if isinstance(result, BaseException)
        }
        if failures:
            raise LibraryLoadError(failures) from next(iter(failures.values()))

    async def _import(self, name: str) -> None:
        try:
            await self._sdk.import_library(name)
        except Exception as exc:
            logger.error(f"Error loading map library '{name}': {exc}")
            self._states[name] = LoadState.ERROR
            self._errors[name] = exc
            raise
        self._states[name] = LoadState.LOADED
        logger.debug(f"Map library loaded: {name}")

    def reset(self) -> None:
        """Forget options, SDK and every library state."""
        for task in self._tasks.values():
            if not task.done():
                task.cancel()
        self._clear()


_loader: LibraryLoader | None = None


def get_loader() -> LibraryLoader:
    """Return the process-wide loader, creating it on first use."""
    global _loader
    if _loader is None:
        _loader = LibraryLoader()
    return _loader


def reset_loader() -> LibraryLoader:
    """Replace the process-wide loader with a fresh instance."""
    global _loader
    _loader = LibraryLoader()
    return _loader
