"""ApiProvider — the set of libraries one consumer needs, and their status.

A provider is created asynchronously: it initializes the shared loader,
loads its requested libraries and only then returns.  Load failures go to
``on_error`` when one is supplied, otherwise they propagate to the caller of
``ApiProvider.create``.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Mapping, Optional

from loguru import logger

from mapengine.api.loader import LibraryLoader, LoaderOptions, LoadState, get_loader
from mapengine.errors import LibraryLoadError, PreconditionError
from mapengine.sdk.base import MapSDK


class ProviderOptions(LoaderOptions):
    """Loader options plus an optional load-failure handler."""

    on_error: Optional[Callable[[LibraryLoadError], Any]] = None


class ApiProvider:
    """Tracks the libraries a consumer requested from a LibraryLoader."""

    def __init__(self, options: ProviderOptions, loader: LibraryLoader) -> None:
        self._options = options
        self._loader = loader
        self._requested = list(dict.fromkeys(options.libraries))

    @classmethod
    async def create(
        cls,
        options: ProviderOptions,
        sdk: MapSDK,
        loader: LibraryLoader | None = None,
    ) -> "ApiProvider":
        """Initialize ``loader`` (the process-wide one by default) and load
        ``options.libraries``.

        Raises:
            LibraryLoadError: If loading failed and no ``on_error`` was given.
        """
        loader = loader or get_loader()
        loader.init(options, sdk)
        try:
            await loader.load_libraries(options.libraries)
        except LibraryLoadError as exc:
            if options.on_error is None:
                raise
            logger.warning(f"Routing library load failure to on_error: {exc}")
            result = options.on_error(exc)
            if inspect.isawaitable(result):
                await result
        return cls(options, loader)

    @property
    def options(self) -> ProviderOptions:
        return self._options

    @property
    def loader(self) -> LibraryLoader:
        return self._loader

    @property
    def sdk(self) -> MapSDK:
        return self._loader.sdk

    @property
    def requested_libraries(self) -> list[str]:
        return list(self._requested)

    @property
    def apis(self) -> Mapping[str, LoadState]:
        return self._loader.states

    @property
    def loaded_libraries(self) -> list[str]:
        return self._loader.loaded_libraries

    @property
    def is_fully_loaded(self) -> bool:
        """True once every requested library is LOADED."""
        return all(self._loader.state_of(name) is LoadState.LOADED for name in self._requested)

    def require(self, library: str, consumer: str) -> None:
        """Raise PreconditionError unless ``library`` is loaded."""
        state = self._loader.state_of(library)
        if state is not LoadState.LOADED:
            raise PreconditionError(
                f"{consumer} requires the '{library}' map library, "
                f"which is not loaded (state: {state.value})"
            )
