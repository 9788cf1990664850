"""serpharvest test configuration: shared fixtures for unit and integration tests."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Iterable
from unittest.mock import MagicMock

import pytest

from serpharvest.models.search import LinkSource, SearchResult, SelectOption


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the settings LRU cache between tests."""
    from serpharvest.settings.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def settings(tmp_path: Path):
    """Default settings with results written under ``tmp_path``."""
    from serpharvest.settings.config import Settings

    s = Settings()
    s.output.results_dir = str(tmp_path)
    return s


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def sleeps(monkeypatch) -> list[float]:
    """Replace ``time.sleep`` with a recorder so no test actually waits."""
    recorded: list[float] = []
    monkeypatch.setattr(time, "sleep", lambda seconds: recorded.append(seconds))
    return recorded


# ---------------------------------------------------------------------------
# Page doubles
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_page() -> MagicMock:
    """A ``MagicMock`` standing in for a Playwright ``Page``."""
    page = MagicMock(name="page")
    page.viewport_size = {"width": 1920, "height": 1080}
    page.url = "https://www.google.com/search?q=test"
    return page


class FakeCapability:
    """``PageCapability`` double returning scripted raw link batches.

    Each call to ``query_visible_links`` consumes the next batch (the last
    batch repeats). Batches are raw ``{"url", "text"}`` dicts and go
    through the real ``LinkFilter``.
    """

    def __init__(
        self,
        batches: Iterable[list[dict[str, Any]]] = ([],),
        options: dict[Any, list[SelectOption]] | None = None,
        multiple: dict[Any, bool] | None = None,
    ) -> None:
        self.batches = [list(b) for b in batches] or [[]]
        self.options = options or {}
        self.multiple = multiple or {}
        self.calls = 0

    def query_visible_links(self, link_filter, *, source: LinkSource = LinkSource.VISIBLE) -> list[SearchResult]:
        batch = self.batches[min(self.calls, len(self.batches) - 1)]
        self.calls += 1
        return link_filter.apply(batch, source=source)

    def read_select_options(self, handle) -> list[SelectOption]:
        return self.options.get(handle, [])

    def is_multi_select(self, handle) -> bool:
        return self.multiple.get(handle, False)


@pytest.fixture()
def make_capability():
    """Factory for ``FakeCapability`` instances."""
    return FakeCapability


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that require external services or real I/O")
    config.addinivalue_line("markers", "slow: marks tests that take more than a few seconds")
