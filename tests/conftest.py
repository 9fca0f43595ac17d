"""
Shared pytest fixtures and configuration for wikiconvert tests.

This module provides:
- Settings cache and logging reset for test isolation
- An in-memory edit surface and fast timings
- A zero-interval dispatcher and an ``httpx.MockTransport`` client factory

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments:

    @pytest.mark.asyncio
    async def test_something(surface, timings):
        ...
"""

import logging
import sys
from collections.abc import Callable, Generator
from pathlib import Path

import httpx
import pytest
import structlog

# Ensure wikiconvert package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from wikiconvert.core.settings import (
    MUSICBRAINZ_CHANNEL,
    WIKIPEDIA_CHANNEL,
    ConversionTimings,
    clear_settings_cache,
)
from wikiconvert.execution.rate_limit import ChannelConfig, RateLimitedDispatcher

from tests._support.fake_surface import FakeSurface


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_cache() -> Generator[None, None, None]:
    """Every test starts from freshly loaded settings."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo ``configure_logging`` calls made by a test (CLI callbacks included)."""
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def timings() -> ConversionTimings:
    """Short deadlines; the search settle outlasts the fake surface's render delay."""
    return ConversionTimings.immediate().model_copy(update={"search_settle": 0.05})


@pytest.fixture
def dispatcher() -> RateLimitedDispatcher:
    return RateLimitedDispatcher(
        {
            WIKIPEDIA_CHANNEL: ChannelConfig(interval=0.0),
            MUSICBRAINZ_CHANNEL: ChannelConfig(interval=0.0),
        }
    )


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory for an ``httpx.AsyncClient`` served by a handler function."""

    def make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return make

