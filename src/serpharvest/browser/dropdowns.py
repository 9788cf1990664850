"""Dropdown and native select interaction for the enrichment pass.

Third-party pages often hide links behind ``<select>`` filters (years,
report types) or custom menu widgets. This module drives those controls
and collects the links they reveal:

1. **Native selects**: multi-selects get every option; single selects
   prefer an "all" option (``all``/``semua``/``seluruh``) and otherwise
   take the last option. Revealed links are tagged ``select``.
2. **Custom triggers**: each visible trigger is expanded through an
   ordered fallback chain (script click → forced click on a raised
   ancestor → focus + Enter). The first strategy that leaves the trigger
   observably expanded wins. The opened menu is then applied: every
   visible checkbox is ticked, or else the "all" item (else the last
   item) is clicked. Revealed links are tagged ``dropdown``.

Every select and trigger is isolated: a failure is logged and skipped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Sequence

from serpharvest.browser.extraction import LinkFilter, merge_results
from serpharvest.browser.navigation import wait_for_settle
from serpharvest.models.search import LinkSource, SearchResult, SelectOption
from serpharvest.settings.config import EnrichmentSettings

if TYPE_CHECKING:
    from playwright.sync_api import ElementHandle, Page

    from serpharvest.browser.page_capability import PageCapability

logger = logging.getLogger(__name__)

_FORCED_CLICK_TIMEOUT_MS = 2_000

# Lifts the nearest dropdown container above overlays so a click lands.
_RAISE_DROPDOWN_JS = """
(el) => {
    const target = el.closest('[class*="dropdown"], [role="combobox"], [aria-haspopup]') || el;
    for (const node of new Set([target, el])) {
        node.style.pointerEvents = 'auto';
        node.style.zIndex = '2147483647';
        if (window.getComputedStyle(node).position === 'static') {
            node.style.position = 'relative';
        }
    }
}
"""

_VISIBLE_MENU_COUNT_JS = """
(menuSelector) => Array.from(document.querySelectorAll(menuSelector)).filter(el => {
    const style = window.getComputedStyle(el);
    const rect = el.getBoundingClientRect();
    return style.display !== 'none' && style.visibility !== 'hidden' &&
        style.opacity !== '0' && rect.width > 0 && rect.height > 0;
}).length
"""


# ---------------------------------------------------------------------------
# Native select option choice
# ---------------------------------------------------------------------------


def compile_select_all_pattern(pattern: str) -> re.Pattern[str]:
    """Compile the "select all" label alternation as a whole-word, case-insensitive regex."""
    return re.compile(rf"\b(?:{pattern})\b", re.IGNORECASE)


def choose_select_values(
    options: Sequence[SelectOption],
    *,
    multiple: bool,
    select_all: re.Pattern[str],
) -> list[str]:
    """Pick the option values to select.

    Multi-selects get every option. Single selects get the first option
    whose label matches *select_all*, else the last option.
    """
    if not options:
        return []
    if multiple:
        return [opt.value for opt in options]
    index = preferred_index([opt.label or opt.value for opt in options], select_all)
    return [options[index].value]


def preferred_index(labels: Sequence[str], select_all: re.Pattern[str]) -> int:
    """Index of the first label matching *select_all*, else of the last label."""
    for i, label in enumerate(labels):
        if select_all.search(label):
            return i
    return len(labels) - 1


# ---------------------------------------------------------------------------
# Expansion strategies: (page, element) -> bool, True if the action was issued
# ---------------------------------------------------------------------------


def script_click(page: Page, element: ElementHandle) -> bool:
    """Dispatch a DOM-level ``click()`` without pointer actionability checks."""
    element.evaluate("(el) => el.click()")
    return True


def forced_click(page: Page, element: ElementHandle) -> bool:
    """Raise the dropdown above overlays and click with ``force=True``."""
    element.evaluate(_RAISE_DROPDOWN_JS)
    element.click(force=True, timeout=_FORCED_CLICK_TIMEOUT_MS)
    return True


def keyboard_activate(page: Page, element: ElementHandle) -> bool:
    """Focus the trigger and press Enter."""
    element.focus()
    page.keyboard.press("Enter")
    return True


ExpansionStrategy = Callable[["Page", "ElementHandle"], bool]

DEFAULT_STRATEGIES: tuple[tuple[str, ExpansionStrategy], ...] = (
    ("script_click", script_click),
    ("forced_click", forced_click),
    ("keyboard", keyboard_activate),
)


# ---------------------------------------------------------------------------
# Interactor
# ---------------------------------------------------------------------------


@dataclass
class DropdownHarvest:
    """Links revealed by select/dropdown interaction on one page."""

    links: list[SearchResult] = field(default_factory=list)
    selects_handled: int = 0
    triggers_expanded: int = 0
    triggers_failed: int = 0
    menus_applied: int = 0


class DropdownInteractor:
    """Drive the selects and dropdown triggers of one page.

    Args:
        capability: DOM access for link and option queries.
        link_filter: Exclusion rules applied to revealed links.
        settings: Selector lists, patterns and timing budgets.
        strategies: Ordered ``(name, strategy)`` fallback chain.
    """

    def __init__(
        self,
        capability: PageCapability,
        link_filter: LinkFilter,
        settings: EnrichmentSettings | None = None,
        strategies: Sequence[tuple[str, ExpansionStrategy]] = DEFAULT_STRATEGIES,
    ) -> None:
        self.capability = capability
        self.link_filter = link_filter
        self.settings = settings or EnrichmentSettings()
        self.strategies = tuple(strategies)
        self.select_all = compile_select_all_pattern(self.settings.select_all_pattern)
        self.menu_selector = ", ".join(self.settings.menu_selectors)
        self.trigger_selector = ", ".join(self.settings.trigger_selectors)
        self.menu_item_selector = ", ".join(self.settings.menu_item_selectors)

    def harvest(self, page: Page) -> DropdownHarvest:
        """Run native selects, then custom triggers, collecting revealed links."""
        result = DropdownHarvest()
        seen = {link.url for link in self.capability.query_visible_links(self.link_filter)}

        for select in page.query_selector_all("select"):
            try:
                if self._handle_select(page, select):
                    result.selects_handled += 1
                    merge_results(result.links, self._newly_visible(seen, LinkSource.SELECT))
            except Exception as e:
                logger.warning("Failed to interact with select on %s: %s", page.url, e)

        triggers = page.query_selector_all(self.trigger_selector)[: self.settings.max_triggers]
        for trigger in triggers:
            try:
                if not self._is_candidate_trigger(trigger):
                    continue
                strategy = self.expand_trigger(page, trigger)
                if strategy is None:
                    result.triggers_failed += 1
                    logger.debug("No strategy expanded trigger on %s", page.url)
                    continue
                result.triggers_expanded += 1
                merge_results(result.links, self._newly_visible(seen, LinkSource.DROPDOWN))
                if self.apply_menu(page):
                    result.menus_applied += 1
                    merge_results(result.links, self._newly_visible(seen, LinkSource.DROPDOWN))
                self._collapse(page)
            except Exception as e:
                result.triggers_failed += 1
                logger.warning("Failed to interact with dropdown on %s: %s", page.url, e)

        logger.info(
            "Dropdown harvest on %s: %d selects, %d expanded, %d applied, %d failed, %d links",
            page.url,
            result.selects_handled,
            result.triggers_expanded,
            result.menus_applied,
            result.triggers_failed,
            len(result.links),
        )
        return result

    def expand_trigger(self, page: Page, element: ElementHandle) -> str | None:
        """Try each strategy until the trigger is observably expanded.

        Returns:
            The name of the winning strategy, or ``None``.
        """
        menus_before = self._visible_menu_count(page)
        for name, strategy in self.strategies:
            try:
                if not strategy(page, element):
                    continue
            except Exception as e:
                logger.debug("Strategy %s raised: %s", name, e)
                continue
            page.wait_for_timeout(self.settings.expand_wait_ms)
            if self._is_expanded(page, element, menus_before):
                logger.debug("Trigger expanded via %s", name)
                return name
        return None

    def apply_menu(self, page: Page) -> bool:
        """Apply the choice offered by an opened menu.

        Ticks every visible checkbox; without checkboxes, clicks the first
        visible item matching the "all" pattern, else the last visible item.

        Returns:
            ``True`` if anything was ticked or clicked.
        """
        timeout = self.settings.click_timeout_ms
        checkboxes = [c for c in page.query_selector_all(self.settings.menu_checkbox_selector) if c.is_visible()]
        if checkboxes:
            for checkbox in checkboxes:
                checkbox.check(timeout=timeout)
            logger.debug("Ticked %d menu checkboxes", len(checkboxes))
        else:
            items = [i for i in page.query_selector_all(self.menu_item_selector) if i.is_visible()]
            if not items:
                return False
            item = items[preferred_index([i.inner_text().strip() for i in items], self.select_all)]
            item.click(timeout=timeout)
            logger.debug("Clicked menu item %d of %d", items.index(item) + 1, len(items))
        wait_for_settle(page, timeout_ms=self.settings.settle_timeout_ms)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _handle_select(self, page: Page, select: ElementHandle) -> bool:
        options = self.capability.read_select_options(select)
        if not options:
            return False
        multiple = self.capability.is_multi_select(select)
        values = choose_select_values(options, multiple=multiple, select_all=self.select_all)
        select.select_option(value=values, timeout=self.settings.click_timeout_ms)
        logger.debug("Selected %s (multiple=%s)", values, multiple)
        wait_for_settle(page, timeout_ms=self.settings.settle_timeout_ms)
        return True

    def _is_candidate_trigger(self, element: ElementHandle) -> bool:
        # Native selects are handled separately; hidden triggers are skipped.
        if element.evaluate("(el) => el.tagName.toLowerCase()") == "select":
            return False
        return element.is_visible()

    def _is_expanded(self, page: Page, element: ElementHandle, menus_before: int) -> bool:
        if element.get_attribute("aria-expanded") == "true":
            return True
        return self._visible_menu_count(page) > menus_before

    def _visible_menu_count(self, page: Page) -> int:
        if not self.menu_selector:
            return 0
        return int(page.evaluate(_VISIBLE_MENU_COUNT_JS, self.menu_selector))

    def _newly_visible(self, seen: set[str], source: LinkSource) -> list[SearchResult]:
        fresh = []
        for link in self.capability.query_visible_links(self.link_filter, source=source):
            if link.url in seen:
                continue
            seen.add(link.url)
            fresh.append(link)
        return fresh

    def _collapse(self, page: Page) -> None:
        try:
            page.keyboard.press("Escape")
        except Exception as e:
            logger.debug("Escape after expansion failed: %s", e)
