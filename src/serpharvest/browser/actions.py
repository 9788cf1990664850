"""Human-paced page actions for the search session.

Consent dismissal, query entry, scrolling and pagination. Each action is
performed with realistic timing to reduce automated-traffic detection;
pointer movement is best-effort and never replaces an element click.
"""

from __future__ import annotations

import logging
import random
import time
from typing import TYPE_CHECKING

from playwright.sync_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeout

from serpharvest.browser.navigation import wait_for_settle
from serpharvest.browser.timing import random_delay, typing_cadence
from serpharvest.exceptions import QueryInputNotFoundError
from serpharvest.settings.config import InteractionSettings

if TYPE_CHECKING:
    from playwright.sync_api import Page

    from serpharvest.browser.motion import Pointer

logger = logging.getLogger(__name__)

# Consent buttons are approached near their top-left corner
_CONSENT_POINTER_OFFSET = (20, 10)


def handle_cookie_consent(
    page: Page,
    pointer: Pointer,
    *,
    selector: str = 'button[aria-label="Accept all"]',
    timeout_ms: int = 5_000,
) -> bool:
    """Dismiss a consent gate if one is shown.

    Returns:
        ``True`` if the accept button was clicked, ``False`` if no gate
        appeared (a normal case) or it could not be clicked.
    """
    try:
        button = page.wait_for_selector(selector, state="visible", timeout=timeout_ms)
    except PlaywrightTimeout:
        logger.info("No consent gate within %dms", timeout_ms)
        return False
    if button is None:
        return False

    box = button.bounding_box()
    if box:
        _move_best_effort(pointer, box, offset=_CONSENT_POINTER_OFFSET)
    try:
        button.click()
    except PlaywrightError as e:
        logger.warning("Consent button could not be clicked: %s", e)
        return False
    logger.info("Consent gate accepted")
    return True


def submit_query(
    page: Page,
    pointer: Pointer,
    query: str,
    *,
    selector: str,
    min_delay: float,
    max_delay: float,
    timeout_ms: int = 30_000,
    interaction: InteractionSettings | None = None,
) -> None:
    """Type *query* into the search box like a person would and submit it.

    Raises:
        QueryInputNotFoundError: If the query box never appears. Fatal to
            the session.
    """
    interaction = interaction or InteractionSettings()
    random_delay(min_delay, max_delay)

    try:
        search_box = page.wait_for_selector(selector, state="visible", timeout=timeout_ms)
    except PlaywrightTimeout as exc:
        raise QueryInputNotFoundError(selector, timeout_ms) from exc
    if search_box is None:
        raise QueryInputNotFoundError(selector, timeout_ms)

    box = search_box.bounding_box()
    if box:
        _move_best_effort(pointer, box)
    search_box.click()

    for char, delay in typing_cadence(
        query, interaction.typing_delay_min_ms, interaction.typing_delay_max_ms
    ):
        page.keyboard.type(char)
        time.sleep(delay)

    random_delay(interaction.submit_pause_min, interaction.submit_pause_max)
    page.keyboard.press("Enter")
    page.wait_for_load_state("load", timeout=timeout_ms)
    wait_for_settle(page, timeout_ms=timeout_ms)
    logger.info("Submitted query %r", query)


def simulate_natural_scrolling(
    page: Page,
    min_delay: float,
    max_delay: float,
    *,
    interaction: InteractionSettings | None = None,
) -> list[int]:
    """Scroll down in a few wheel steps of random size, pausing between them.

    Returns:
        The pixel delta of each wheel step.
    """
    interaction = interaction or InteractionSettings()
    deltas = []
    for _ in range(interaction.scroll_steps):
        delta = random.randint(interaction.scroll_min_px, interaction.scroll_max_px)
        page.mouse.wheel(0, delta)
        deltas.append(delta)
        random_delay(min_delay, max_delay)
    return deltas


def go_to_next_page(page: Page, selector: str, *, timeout_ms: int = 30_000) -> bool:
    """Activate the next-results-page control if it is visible.

    Returns:
        ``False`` when there is no visible control (end of results).
    """
    next_button = page.locator(selector).first
    if not next_button.is_visible():
        logger.info("No next-page control (%s); result set exhausted", selector)
        return False
    next_button.click()
    page.wait_for_load_state("load", timeout=timeout_ms)
    wait_for_settle(page, timeout_ms=timeout_ms)
    return True


def _move_best_effort(pointer: Pointer, box: dict[str, float], offset: tuple[float, float] | None = None) -> None:
    try:
        pointer.move_to_box(box, offset=offset)
    except PlaywrightError as e:
        logger.debug("Pointer move aborted: %s", e)
