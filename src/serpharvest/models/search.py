"""Domain models for search sessions, harvested links and enrichment output.

Field names are snake_case in Python; the persisted JSON exchange format
uses the camelCase aliases (``pagesProcessed``, ``extractedLinks`` ...).
Always serialise with ``by_alias=True``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from serpharvest.settings.config import BrowserSettings


class LinkSource(str, Enum):
    """How a link was discovered."""

    VISIBLE = "visible"
    DROPDOWN = "dropdown"
    SELECT = "select"


def is_absolute_http_url(url: str) -> bool:
    """Return ``True`` for absolute ``http``/``https`` URLs with a host."""
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class SearchConfig(BaseModel):
    """Immutable input to one search session."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    query: str = Field(..., min_length=1)
    num_pages: int = Field(5, ge=1, alias="numPages")
    min_delay: float = Field(1.0, ge=0, alias="minDelay")
    max_delay: float = Field(3.0, ge=0, alias="maxDelay")

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("query must not be blank")
        return value

    @model_validator(mode="after")
    def _delay_window(self) -> "SearchConfig":
        if self.max_delay < self.min_delay:
            raise ValueError("maxDelay must be greater than or equal to minDelay")
        return self


class Viewport(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = Field(1920, gt=0)
    height: int = Field(1080, gt=0)


class BrowserConfig(BaseModel):
    """Session-wide browser configuration.

    Built once per session from ``settings.browser`` and then merged with
    caller overrides via :meth:`merged` (override wins, else default).
    """

    model_config = ConfigDict(frozen=True)

    headless: bool = True
    sandbox: bool = False
    viewport: Viewport = Field(default_factory=Viewport)
    user_agent: str = ""
    locale: str = "en-US"

    @classmethod
    def from_settings(cls, browser: BrowserSettings) -> "BrowserConfig":
        return cls(
            headless=browser.headless,
            sandbox=browser.sandbox,
            viewport=Viewport(width=browser.viewport_width, height=browser.viewport_height),
            user_agent=browser.user_agent,
            locale=browser.locale,
        )

    def merged(self, overrides: Mapping[str, Any] | None = None) -> "BrowserConfig":
        """Return a copy with every non-``None`` override applied.

        ``viewport`` may be given as a ``Viewport`` or a partial dict; a
        partial dict only replaces the dimensions it names.
        """
        if not overrides:
            return self
        data = self.model_dump()
        for key, value in overrides.items():
            if value is None or key not in data:
                continue
            if key == "viewport":
                if isinstance(value, Viewport):
                    value = value.model_dump()
                data["viewport"] = {**data["viewport"], **value}
            else:
                data[key] = value
        return type(self).model_validate(data)


# ---------------------------------------------------------------------------
# Harvested links
# ---------------------------------------------------------------------------


class SearchResult(BaseModel):
    """One harvested outbound link. ``url`` is the uniqueness key."""

    model_config = ConfigDict(frozen=True)

    url: str
    text: str
    source: LinkSource = LinkSource.VISIBLE

    @field_validator("url")
    @classmethod
    def _absolute_url(cls, value: str) -> str:
        if not is_absolute_http_url(value):
            raise ValueError(f"not an absolute http(s) URL: {value!r}")
        return value

    @field_validator("text")
    @classmethod
    def _non_empty_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("link text must not be empty")
        return value


class SelectOption(BaseModel):
    """An ``<option>`` read from a native ``<select>``."""

    value: str
    label: str = ""


class SearchResponse(BaseModel):
    """Output of one search session, persisted once at session end."""

    model_config = ConfigDict(populate_by_name=True)

    query: str
    pages_processed: int = Field(0, ge=0, alias="pagesProcessed")
    total_links: int = Field(0, ge=0, alias="totalLinks")
    results: list[SearchResult] = Field(default_factory=list)

    @classmethod
    def build(cls, query: str, pages_processed: int, results: list[SearchResult]) -> "SearchResponse":
        return cls(
            query=query,
            pages_processed=pages_processed,
            total_links=len(results),
            results=list(results),
        )

    @model_validator(mode="after")
    def _consistent(self) -> "SearchResponse":
        if self.total_links != len(self.results):
            raise ValueError(
                f"totalLinks ({self.total_links}) does not match number of results ({len(self.results)})"
            )
        urls = [r.url for r in self.results]
        if len(set(urls)) != len(urls):
            raise ValueError("results contain duplicate urls")
        return self


class ProcessedResult(BaseModel):
    """Outcome of revisiting one previously harvested URL.

    ``error`` and a non-empty ``extracted_links`` may coexist when the
    visit failed after some links had already been collected.
    """

    model_config = ConfigDict(populate_by_name=True)

    original_url: str = Field(..., alias="originalUrl")
    extracted_links: list[SearchResult] = Field(default_factory=list, alias="extractedLinks")
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class ProcessedResponse(BaseModel):
    """Persisted output of one enrichment session."""

    model_config = ConfigDict(populate_by_name=True)

    original_query: str = Field(..., alias="originalQuery")
    processed_results: list[ProcessedResult] = Field(default_factory=list, alias="processedResults")
