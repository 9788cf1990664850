"""In-page DOM queries behind a narrow interface.

Harvesting logic never talks to the DOM directly. It asks a
``PageCapability`` for the visible links of a page and for the options
of a native ``<select>``. The Playwright binding evaluates small
scripts in the page; tests substitute a fake.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from serpharvest.browser.extraction import LinkFilter
from serpharvest.models.search import LinkSource, SearchResult, SelectOption

if TYPE_CHECKING:
    from playwright.sync_api import ElementHandle, Page

logger = logging.getLogger(__name__)

# Anchor-like elements: real anchors, anything carrying an href, and
# elements with link semantics.
LINK_ELEMENT_SELECTOR = 'a, button[href], [role="link"]'

# Returns visible anchor-like elements with an absolute http(s) URL.
_VISIBLE_LINKS_JS = """
(linkSelector) => {
    function isVisible(el) {
        const style = window.getComputedStyle(el);
        const rect = el.getBoundingClientRect();
        return (
            style.display !== 'none' &&
            style.visibility !== 'hidden' &&
            style.opacity !== '0' &&
            rect.width > 0 &&
            rect.height > 0
        );
    }

    const links = [];
    for (const el of document.querySelectorAll(linkSelector)) {
        if (!(el instanceof HTMLElement) || !isVisible(el)) continue;
        let href = el instanceof HTMLAnchorElement ? el.href : el.getAttribute('href');
        if (!href) continue;
        try {
            href = new URL(href, document.baseURI).href;
        } catch (e) {
            continue;
        }
        if (!/^https?:/i.test(href)) continue;
        links.push({url: href, text: (el.innerText || '').trim()});
    }
    return links;
}
"""

_SELECT_OPTIONS_JS = """
(select) => Array.from(select.options).map(opt => ({
    value: opt.value,
    label: (opt.label || opt.text || '').trim(),
}))
"""


class PageCapability(Protocol):
    """DOM queries the harvesting logic needs from a rendered page."""

    def query_visible_links(
        self,
        link_filter: LinkFilter,
        *,
        source: LinkSource = LinkSource.VISIBLE,
    ) -> list[SearchResult]: ...

    def read_select_options(self, handle: Any) -> list[SelectOption]: ...

    def is_multi_select(self, handle: Any) -> bool: ...


class PlaywrightPageCapability:
    """``PageCapability`` implemented with ``page.evaluate`` on a Playwright page."""

    def __init__(self, page: Page) -> None:
        self.page = page

    def query_visible_links(
        self,
        link_filter: LinkFilter,
        *,
        source: LinkSource = LinkSource.VISIBLE,
    ) -> list[SearchResult]:
        raw = self.page.evaluate(_VISIBLE_LINKS_JS, LINK_ELEMENT_SELECTOR)
        return link_filter.apply(raw, source=source)

    def read_select_options(self, handle: ElementHandle) -> list[SelectOption]:
        return [SelectOption(**opt) for opt in handle.evaluate(_SELECT_OPTIONS_JS)]

    def is_multi_select(self, handle: ElementHandle) -> bool:
        return bool(handle.evaluate("(select) => select.multiple"))
