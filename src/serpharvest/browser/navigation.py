"""Page navigation with automatic wait-strategy fallback.

Search pages and third-party result pages frequently keep long-polling
or analytics connections open and never reach ``networkidle``. Navigation
tries ``networkidle`` first and falls back to ``load`` and then
``domcontentloaded`` on timeout. Connection-level failures are not
retried.
"""

from __future__ import annotations

import logging
from typing import Literal

from playwright.sync_api import Error as PlaywrightError, Page, Response, TimeoutError as PlaywrightTimeout

from serpharvest.exceptions import NavigationError

logger = logging.getLogger(__name__)

# Playwright error substrings that indicate the page cannot be reached at all.
_NON_RETRYABLE_ERRORS: tuple[str, ...] = (
    "ERR_NAME_NOT_RESOLVED",
    "ERR_CONNECTION_REFUSED",
    "ERR_CONNECTION_RESET",
    "ERR_CONNECTION_CLOSED",
    "ERR_SSL_PROTOCOL_ERROR",
    "ERR_CERT_AUTHORITY_INVALID",
    "ERR_ADDRESS_UNREACHABLE",
    "ERR_ABORTED",
)

WaitUntil = Literal["commit", "domcontentloaded", "load", "networkidle"]

_FALLBACK_STRATEGY: list[WaitUntil] = ["networkidle", "load", "domcontentloaded"]


def resilient_goto(
    page: Page,
    url: str,
    *,
    timeout_ms: int = 30_000,
    wait_until: WaitUntil = "networkidle",
) -> Response | None:
    """Navigate to *url*, weakening the wait strategy on timeout.

    Args:
        page: Playwright page instance.
        url: Target URL.
        timeout_ms: Timeout per attempt in milliseconds.
        wait_until: Preferred initial wait strategy.

    Returns:
        The main-frame ``Response``, or ``None``.

    Raises:
        NavigationError: For DNS, connection and TLS failures.
        PlaywrightTimeout: If every strategy in the chain times out.
    """
    last_error: PlaywrightTimeout | None = None
    for strategy in fallback_chain(wait_until):
        try:
            logger.debug("goto %s (wait_until=%s, timeout=%dms)", url, strategy, timeout_ms)
            return page.goto(url, wait_until=strategy, timeout=timeout_ms)
        except PlaywrightTimeout as exc:
            logger.warning("Navigation to %s timed out with wait_until=%s", url, strategy)
            last_error = exc
        except PlaywrightError as exc:
            reason = _non_retryable_reason(str(exc))
            if reason is None:
                raise
            logger.warning("Navigation to %s failed (non-retryable): %s", url, reason)
            raise NavigationError(url, reason) from exc

    raise last_error  # type: ignore[misc]


def wait_for_settle(page: Page, *, timeout_ms: int = 5_000) -> bool:
    """Best-effort wait for ``networkidle``; returns ``False`` if it never came."""
    try:
        page.wait_for_load_state("networkidle", timeout=timeout_ms)
        return True
    except PlaywrightTimeout:
        logger.debug("Page did not reach networkidle within %dms", timeout_ms)
        return False


def fallback_chain(preferred: WaitUntil) -> list[WaitUntil]:
    """Return the strategies to try, starting from *preferred*."""
    if preferred in _FALLBACK_STRATEGY:
        idx = _FALLBACK_STRATEGY.index(preferred)
        return _FALLBACK_STRATEGY[idx:]
    return [preferred, *_FALLBACK_STRATEGY]


def _non_retryable_reason(message: str) -> str | None:
    for pattern in _NON_RETRYABLE_ERRORS:
        if pattern in message:
            return pattern.replace("ERR_", "").replace("_", " ").lower()
    return None
