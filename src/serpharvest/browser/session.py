"""Scoped browser lifetime for one harvesting session.

Acquires a Playwright driver, one Chromium instance, one context and one
page; releases them in reverse order on every exit path, including when
the session body raises.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

from serpharvest.browser.stealth import apply_stealth_script, build_browser_profile
from serpharvest.models.search import BrowserConfig

if TYPE_CHECKING:
    from playwright.sync_api import Page

logger = logging.getLogger(__name__)


@contextmanager
def browser_session(config: BrowserConfig, *, timeout_ms: int = 30_000) -> Iterator[Page]:
    """Yield a fresh page inside a dedicated browser and context.

    Args:
        config: Resolved browser configuration for this session.
        timeout_ms: Default timeout for page actions and waits.

    Yields:
        A Playwright ``Page`` ready for navigation.
    """
    from playwright.sync_api import sync_playwright

    profile = build_browser_profile(config)

    with sync_playwright() as pw:
        browser = pw.chromium.launch(**profile.launch_args)
        context = None
        try:
            context = browser.new_context(**profile.context_args)
            apply_stealth_script(context)
            page = context.new_page()
            page.set_default_timeout(timeout_ms)
            logger.info("Browser session opened (headless=%s)", config.headless)
            yield page
        finally:
            if context is not None:
                _close_quietly(context, "context")
            _close_quietly(browser, "browser")
            logger.info("Browser session closed")


def _close_quietly(resource, name: str) -> None:
    """Close *resource*, logging rather than raising so the original error surfaces."""
    try:
        resource.close()
    except Exception as e:
        logger.warning("Failed to close %s: %s", name, e)
