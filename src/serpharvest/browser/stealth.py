"""Browser launch and context arguments with automation-flag suppression.

Translates a ``BrowserConfig`` into the keyword arguments Playwright's
``chromium.launch()`` and ``browser.new_context()`` expect, plus the init
script that hides ``navigator.webdriver``.

Usage::

    from serpharvest.browser.stealth import build_browser_profile, apply_stealth_script

    profile = build_browser_profile(config)
    browser = pw.chromium.launch(**profile.launch_args)
    context = browser.new_context(**profile.context_args)
    apply_stealth_script(context)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from serpharvest.models.search import BrowserConfig

logger = logging.getLogger(__name__)

# Injected via context.add_init_script() so every page and frame gets it
STEALTH_SCRIPT: str = "Object.defineProperty(navigator, 'webdriver', {get: () => undefined})"

_SANDBOX_DISABLE_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
]

_COMMON_ARGS: list[str] = [
    "--disable-dev-shm-usage",
]


@dataclass
class BrowserProfile:
    """All Playwright launch + context arguments for a single session."""

    # Arguments for pw.chromium.launch()
    launch_args: dict[str, Any] = field(default_factory=dict)

    # Arguments for browser.new_context()
    context_args: dict[str, Any] = field(default_factory=dict)


def accept_language(locale: str) -> str:
    """Build an ``Accept-Language`` header value for *locale*.

    >>> accept_language("en-US")
    'en-US,en;q=0.9'
    """
    primary = locale.split("-")[0]
    if primary == locale:
        return locale
    return f"{locale},{primary};q=0.9"


def build_browser_profile(config: BrowserConfig) -> BrowserProfile:
    """Build a ``BrowserProfile`` from a resolved ``BrowserConfig``."""
    profile = BrowserProfile()

    # --- Launch args ---
    args = list(_COMMON_ARGS)
    if not config.sandbox:
        args = _SANDBOX_DISABLE_ARGS + args
    args.append(f"--window-size={config.viewport.width},{config.viewport.height}")
    profile.launch_args = {"headless": config.headless, "args": args}

    # --- Context args ---
    ctx = profile.context_args
    ctx["viewport"] = {"width": config.viewport.width, "height": config.viewport.height}
    if config.user_agent:
        ctx["user_agent"] = config.user_agent
    ctx["locale"] = config.locale
    ctx["extra_http_headers"] = {"Accept-Language": accept_language(config.locale)}

    logger.debug("Browser profile: headless=%s locale=%s viewport=%s", config.headless, config.locale, ctx["viewport"])
    return profile


def apply_stealth_script(context) -> None:
    """Register the automation-flag suppression script on a browser context.

    Must run before the first page is opened so the script executes in
    every document from the start.
    """
    context.add_init_script(STEALTH_SCRIPT)
    logger.debug("Stealth script registered")
