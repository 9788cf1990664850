"""Pointer trajectories that approximate human mouse movement.

The pointer is moved through a fixed number of linearly interpolated
waypoints, each nudged by independent uniform jitter, with a short random
pause between waypoints. Motion is best-effort: clicks are issued against
elements, never against the final cursor coordinates.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from serpharvest.browser.timing import random_delay

if TYPE_CHECKING:
    from playwright.sync_api import Page

logger = logging.getLogger(__name__)

DEFAULT_STEPS = 10
DEFAULT_JITTER_PX = 10
DEFAULT_STEP_PAUSE = (0.05, 0.1)


@dataclass(frozen=True)
class MousePosition:
    x: float
    y: float


def interpolate_waypoints(
    start: MousePosition,
    target_x: float,
    target_y: float,
    *,
    steps: int = DEFAULT_STEPS,
    jitter_px: float = DEFAULT_JITTER_PX,
) -> list[MousePosition]:
    """Return *steps* jittered waypoints from *start* towards the target."""
    waypoints = []
    for i in range(1, steps + 1):
        t = i / steps
        x = start.x + (target_x - start.x) * t + random.uniform(-jitter_px, jitter_px)
        y = start.y + (target_y - start.y) * t + random.uniform(-jitter_px, jitter_px)
        waypoints.append(MousePosition(x, y))
    return waypoints


class Pointer:
    """Tracks the virtual cursor of one page across moves.

    Args:
        page: Playwright ``Page`` whose mouse is driven.
        start: Initial position; defaults to the viewport centre.
        steps: Waypoints per move.
        jitter_px: Max absolute jitter added to each waypoint coordinate.
        step_pause: ``(min, max)`` seconds paused between waypoints.
    """

    def __init__(
        self,
        page: Page,
        start: MousePosition | None = None,
        *,
        steps: int = DEFAULT_STEPS,
        jitter_px: float = DEFAULT_JITTER_PX,
        step_pause: tuple[float, float] = DEFAULT_STEP_PAUSE,
    ) -> None:
        self.page = page
        self.position = start or _viewport_centre(page)
        self.steps = steps
        self.jitter_px = jitter_px
        self.step_pause = step_pause

    def move_to(self, target_x: float, target_y: float) -> MousePosition:
        """Move the mouse towards ``(target_x, target_y)`` through jittered waypoints.

        If the underlying move raises, the error propagates and
        ``position`` keeps the last waypoint that was reached.
        """
        waypoints = interpolate_waypoints(
            self.position, target_x, target_y, steps=self.steps, jitter_px=self.jitter_px
        )
        logger.debug("Pointer %s -> (%.0f, %.0f) in %d steps", self.position, target_x, target_y, len(waypoints))
        for point in waypoints:
            self.page.mouse.move(point.x, point.y)
            self.position = point
            random_delay(*self.step_pause)
        return self.position

    def move_to_box(self, box: dict[str, float], offset: tuple[float, float] | None = None) -> MousePosition:
        """Move to a bounding box: its centre, or ``box.x/y`` plus *offset*."""
        if offset is None:
            return self.move_to(box["x"] + box["width"] / 2, box["y"] + box["height"] / 2)
        return self.move_to(box["x"] + offset[0], box["y"] + offset[1])


def _viewport_centre(page: Page) -> MousePosition:
    size = page.viewport_size or {"width": 0, "height": 0}
    return MousePosition(size["width"] / 2, size["height"] / 2)
