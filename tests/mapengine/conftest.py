"""Shared fixtures for mapengine tests.

Every test gets a fresh event loop and a fresh process-wide LibraryLoader.
``build_map`` wires provider -> map against a FakeMapSDK with zero step
delay so animations run in a handful of loop iterations.
"""

from __future__ import annotations

import asyncio

import pytest
from loguru import logger

from mapengine.api import ApiProvider, ProviderOptions, reset_loader
from mapengine.comms import EventBus
from mapengine.sdk.fake import FakeMapSDK
from mapengine.surface import MapSurface


@pytest.fixture(autouse=True)
def _event_loop():
    """Provide a fresh event loop for each test."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


@pytest.fixture(autouse=True)
def loader():
    """Fresh process-wide loader per test."""
    fresh = reset_loader()
    yield fresh
    reset_loader()


@pytest.fixture
def sdk():
    return FakeMapSDK()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def log_messages():
    """Collect loguru messages as (level, text) tuples."""
    messages: list[tuple[str, str]] = []
    handler_id = logger.add(
        lambda m: messages.append((m.record["level"].name, m.record["message"])),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def build_map(sdk, loader, bus):
    """Async factory: provider + MapSurface on the fake SDK."""

    async def _build(map_id="main", libraries=("maps", "marker"), opts=None, **kwargs):
        provider = await ApiProvider.create(
            ProviderOptions(api_key="test-key", libraries=list(libraries)), sdk, loader
        )
        kwargs.setdefault("step_delay", 0)
        kwargs.setdefault("event_bus", bus)
        return await MapSurface.create(
            map_id, container="#map", provider=provider, opts=opts or {"zoom": 10}, **kwargs
        )

    return _build
