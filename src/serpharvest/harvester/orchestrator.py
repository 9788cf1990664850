"""Top-level session orchestration.

Two independent session types, each bound to one browser context:

* **Search session**: open the engine, accept consent, submit the query,
  then scroll/extract/paginate until ``num_pages`` pages are processed or
  the results run out. Persists one ``SearchResponse``.
* **Enrichment session**: revisit every URL of a persisted
  ``SearchResponse``, expand its selects and dropdowns, extract links, and
  persist one ``ProcessedResult`` per URL.

Sessions and targets run strictly one after another.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Mapping
from urllib.parse import urlparse

from serpharvest.browser.actions import (
    go_to_next_page,
    handle_cookie_consent,
    simulate_natural_scrolling,
    submit_query,
)
from serpharvest.browser.dropdowns import DropdownInteractor
from serpharvest.browser.extraction import LinkFilter, extract_page_links, merge_results
from serpharvest.browser.motion import Pointer
from serpharvest.browser.navigation import resilient_goto
from serpharvest.browser.page_capability import PlaywrightPageCapability
from serpharvest.browser.session import browser_session
from serpharvest.browser.timing import random_delay
from serpharvest.models.search import BrowserConfig, ProcessedResult, SearchConfig, SearchResponse, SearchResult
from serpharvest.storage.results import load_search_response, save_processed_results, save_search_response

if TYPE_CHECKING:
    from playwright.sync_api import Page

    from serpharvest.browser.page_capability import PageCapability
    from serpharvest.settings.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class SearchOutcome:
    response: SearchResponse
    results_path: Path


@dataclass
class EnrichmentOutcome:
    original_query: str
    processed: list[ProcessedResult]
    processed_path: Path

    @property
    def failed_count(self) -> int:
        return sum(1 for p in self.processed if p.failed)


# ---------------------------------------------------------------------------
# Search session
# ---------------------------------------------------------------------------


def run_search(
    config: SearchConfig,
    *,
    settings: Settings | None = None,
    browser_overrides: Mapping[str, Any] | None = None,
    output_dir: str | Path | None = None,
) -> SearchOutcome:
    """Run one complete search session and persist its results.

    Any error aborts the session: the browser is torn down, the error is
    logged and re-raised, and nothing is written.

    Args:
        config: Query, page count and delay window.
        settings: Resolved settings (defaults to ``get_settings()``).
        browser_overrides: Per-call ``BrowserConfig`` overrides.
        output_dir: Where to write the results file (defaults to
            ``settings.output.results_dir``).
    """
    settings = settings or _settings()
    browser_config = BrowserConfig.from_settings(settings.browser).merged(browser_overrides)

    logger.info("Starting search for %r (%d pages)", config.query, config.num_pages)
    try:
        with browser_session(browser_config, timeout_ms=settings.browser.timeout_ms) as page:
            response = search_session(page, config, settings)
    except Exception:
        logger.exception("Search session for %r failed", config.query)
        raise

    path = save_search_response(response, output_dir or settings.output.results_dir)
    logger.info(
        "Search for %r completed: %d pages, %d links", config.query, response.pages_processed, response.total_links
    )
    return SearchOutcome(response=response, results_path=path)


def run_searches(configs: Iterable[SearchConfig], **kwargs: Any) -> list[SearchOutcome]:
    """Run several searches one after another; the first failure stops the run."""
    return [run_search(config, **kwargs) for config in configs]


def search_session(page: Page, config: SearchConfig, settings: Settings) -> SearchResponse:
    """Drive an open page through the full search flow."""
    search = settings.search
    interaction = settings.interaction

    pointer = Pointer(
        page,
        steps=interaction.mouse_steps,
        jitter_px=interaction.mouse_jitter_px,
        step_pause=(interaction.mouse_step_pause_min, interaction.mouse_step_pause_max),
    )

    resilient_goto(page, search.engine_url, timeout_ms=settings.browser.navigation_timeout_ms)
    random_delay(config.min_delay, config.max_delay)

    handle_cookie_consent(page, pointer, selector=search.consent_selector, timeout_ms=search.consent_timeout_ms)
    submit_query(
        page,
        pointer,
        config.query,
        selector=search.query_input_selector,
        min_delay=config.min_delay,
        max_delay=config.max_delay,
        timeout_ms=settings.browser.timeout_ms,
        interaction=interaction,
    )

    pages_processed, results = collect_result_pages(page, PlaywrightPageCapability(page), config, settings)
    return SearchResponse.build(config.query, pages_processed, results)


def collect_result_pages(
    page: Page,
    capability: PageCapability,
    config: SearchConfig,
    settings: Settings,
) -> tuple[int, list[SearchResult]]:
    """Scroll, extract and paginate through the results pages.

    Stops after ``config.num_pages`` pages or as soon as there is no
    visible next-page control.

    Returns:
        ``(pages_processed, results)`` with results deduplicated by URL.
    """
    search = settings.search
    base_filter = LinkFilter.from_lists(search.excluded_hosts, search.excluded_path_keywords)
    results: list[SearchResult] = []
    pages_processed = 0

    while pages_processed < config.num_pages:
        random_delay(config.min_delay, config.max_delay)
        simulate_natural_scrolling(page, config.min_delay, config.max_delay, interaction=settings.interaction)

        # The engine's own host is chrome, whatever its regional domain
        link_filter = base_filter.with_hosts(urlparse(page.url).hostname)
        page_links = extract_page_links(capability, link_filter, max_links=search.max_links_per_page or None)
        added = merge_results(results, page_links)
        pages_processed += 1
        logger.info("Page %d: %d links extracted, %d new", pages_processed, len(page_links), added)

        if pages_processed < config.num_pages:
            if not go_to_next_page(page, search.next_page_selector, timeout_ms=settings.browser.timeout_ms):
                break

    return pages_processed, results


# ---------------------------------------------------------------------------
# Enrichment session
# ---------------------------------------------------------------------------


def process_search_results(
    results_path: str | Path,
    *,
    settings: Settings | None = None,
    browser_overrides: Mapping[str, Any] | None = None,
) -> EnrichmentOutcome:
    """Revisit every URL of a persisted search and harvest further links.

    Failures of individual URLs are recorded on their ``ProcessedResult``
    and never stop the session. A missing or malformed input file, a
    browser that cannot start, or a failed write are fatal.
    """
    settings = settings or _settings()
    response = load_search_response(results_path)
    browser_config = BrowserConfig.from_settings(settings.browser).merged(browser_overrides)

    logger.info("Enriching %d results of %r from %s", len(response.results), response.query, results_path)
    processed: list[ProcessedResult] = []
    try:
        with browser_session(browser_config, timeout_ms=settings.browser.timeout_ms) as page:
            capability = PlaywrightPageCapability(page)
            link_filter = LinkFilter.from_lists(
                settings.search.excluded_hosts, settings.search.excluded_path_keywords
            )
            interactor = DropdownInteractor(capability, link_filter, settings.enrichment)
            for result in response.results:
                logger.info("Processing URL: %s", result.url)
                processed.append(
                    process_url(
                        page,
                        result.url,
                        capability=capability,
                        interactor=interactor,
                        link_filter=link_filter,
                        timeout_ms=settings.browser.navigation_timeout_ms,
                    )
                )
    except Exception:
        logger.exception("Enrichment session for %s failed", results_path)
        raise

    path = save_processed_results(results_path, response.query, processed)
    outcome = EnrichmentOutcome(original_query=response.query, processed=processed, processed_path=path)
    logger.info("Enrichment finished: %d URLs, %d failed", len(processed), outcome.failed_count)
    return outcome


def process_url(
    page: Page,
    url: str,
    *,
    capability: PageCapability,
    interactor: DropdownInteractor,
    link_filter: LinkFilter,
    timeout_ms: int = 30_000,
) -> ProcessedResult:
    """Visit *url*, expand its dropdowns and extract links.

    Links gathered before a failure are kept next to the error message.
    """
    links: list[SearchResult] = []
    try:
        resilient_goto(page, url, timeout_ms=timeout_ms)
        # Interaction links first so their provenance survives dedup
        merge_results(links, interactor.harvest(page).links)
        merge_results(links, extract_page_links(capability, link_filter))
    except Exception as e:
        logger.warning("Failed to process %s: %s", url, e)
        return ProcessedResult(original_url=url, extracted_links=links, error=_error_message(e))
    return ProcessedResult(original_url=url, extracted_links=links)


def _error_message(exc: BaseException) -> str:
    return str(exc).strip() or type(exc).__name__


def _settings() -> Settings:
    from serpharvest.settings import get_settings

    return get_settings()
