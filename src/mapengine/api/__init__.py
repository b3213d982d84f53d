"""SDK library loading and the provider that gates map creation."""

from mapengine.api.loader import (
    KNOWN_LIBRARIES,
    LibraryLoader,
    LoaderOptions,
    LoadState,
    get_loader,
    reset_loader,
)
from mapengine.api.provider import ApiProvider, ProviderOptions

__all__ = [
    "KNOWN_LIBRARIES",
    "ApiProvider",
    "LibraryLoader",
    "LoadState",
    "LoaderOptions",
    "ProviderOptions",
    "get_loader",
    "reset_loader",
]
