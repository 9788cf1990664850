"""Visible-link extraction and deduplication.

The filter trades recall for precision: only user-perceivable anchors
with absolute http(s) URLs survive, and the search engine's own pages,
video hosting and help pages are dropped as navigational chrome.
Visibility is decided in the page (see ``page_capability``); everything
else is decided here so it can be re-applied to stored results.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Mapping
from urllib.parse import urlparse

from serpharvest.models.search import LinkSource, SearchResult, is_absolute_http_url

if TYPE_CHECKING:
    from serpharvest.browser.page_capability import PageCapability

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkFilter:
    """Host and path exclusion rules for harvested links.

    A host is excluded when it equals an entry of ``excluded_hosts`` or is
    a subdomain of one. A path is excluded when any of its segments
    contains one of ``excluded_path_keywords`` (case-insensitive).
    """

    excluded_hosts: tuple[str, ...] = ()
    excluded_path_keywords: tuple[str, ...] = ()

    @classmethod
    def from_lists(cls, hosts: Iterable[str], path_keywords: Iterable[str] = ()) -> "LinkFilter":
        return cls(
            excluded_hosts=tuple(_normalise_host(h) for h in hosts if h.strip()),
            excluded_path_keywords=tuple(k.strip().lower() for k in path_keywords if k.strip()),
        )

    def with_hosts(self, *hosts: str | None) -> "LinkFilter":
        """Return a copy that additionally excludes *hosts* (``None``/blank ignored)."""
        extra = tuple(_normalise_host(h) for h in hosts if h and h.strip())
        merged = self.excluded_hosts + tuple(h for h in extra if h not in self.excluded_hosts)
        return LinkFilter(merged, self.excluded_path_keywords)

    def allows(self, url: str) -> bool:
        if not is_absolute_http_url(url):
            return False
        parsed = urlparse(url)
        host = _normalise_host(parsed.hostname or "")
        for excluded in self.excluded_hosts:
            if host == excluded or host.endswith("." + excluded):
                return False
        segments = [s for s in parsed.path.lower().split("/") if s]
        for keyword in self.excluded_path_keywords:
            if any(keyword in segment for segment in segments):
                return False
        return True

    def apply(
        self,
        links: Iterable[SearchResult | Mapping[str, Any]],
        *,
        source: LinkSource = LinkSource.VISIBLE,
    ) -> list[SearchResult]:
        """Keep links with an allowed URL and non-empty text.

        Raw mappings (``{"url", "text"}``) are tagged with *source*;
        ``SearchResult`` inputs keep their own tag, so applying the filter
        to its own output changes nothing.
        """
        kept: list[SearchResult] = []
        for link in links:
            if isinstance(link, SearchResult):
                url, text, tag = link.url, link.text, link.source
            else:
                url, text, tag = str(link.get("url") or ""), str(link.get("text") or ""), source
            text = text.strip()
            if not text or not self.allows(url):
                continue
            kept.append(SearchResult(url=url, text=text, source=tag))
        return kept


def dedupe_results(results: Iterable[SearchResult]) -> list[SearchResult]:
    """Drop repeated URLs; the first occurrence wins and order is preserved."""
    unique: dict[str, SearchResult] = {}
    for result in results:
        unique.setdefault(result.url, result)
    return list(unique.values())


def merge_results(existing: list[SearchResult], incoming: Iterable[SearchResult]) -> int:
    """Append *incoming* links whose URL is not in *existing* yet.

    Returns:
        The number of links added.
    """
    seen = {r.url for r in existing}
    added = 0
    for result in incoming:
        if result.url in seen:
            continue
        existing.append(result)
        seen.add(result.url)
        added += 1
    return added


def extract_page_links(
    capability: PageCapability,
    link_filter: LinkFilter,
    *,
    source: LinkSource = LinkSource.VISIBLE,
    max_links: int | None = None,
) -> list[SearchResult]:
    """Return the filtered, deduplicated visible links of the current page.

    Args:
        capability: DOM access for the page.
        link_filter: Exclusion rules.
        source: Provenance tag for the returned links.
        max_links: Optional cap applied after deduplication (``None`` or 0 = no cap).
    """
    links = dedupe_results(capability.query_visible_links(link_filter, source=source))
    if max_links:
        links = links[:max_links]
    logger.debug("Extracted %d links", len(links))
    return links


def _normalise_host(host: str) -> str:
    host = host.strip().lower()
    if host.startswith("www."):
        host = host[4:]
    return host
