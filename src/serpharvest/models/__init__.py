"""Pydantic models shared across the harvester, storage, API and CLI."""

from serpharvest.models.search import (
    BrowserConfig,
    LinkSource,
    ProcessedResponse,
    ProcessedResult,
    SearchConfig,
    SearchResponse,
    SearchResult,
    SelectOption,
    Viewport,
)

__all__ = [
    "BrowserConfig",
    "LinkSource",
    "ProcessedResponse",
    "ProcessedResult",
    "SearchConfig",
    "SearchResponse",
    "SearchResult",
    "SelectOption",
    "Viewport",
]
