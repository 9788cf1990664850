"""Browser automation modules (Playwright).

Human-like behaviour lives in ``timing`` (delays, keystroke cadence),
``motion`` (pointer trajectories) and ``actions`` (consent, query entry,
scrolling, pagination). Link harvesting is split between ``extraction``
(visible links) and ``dropdowns`` (links hidden behind selects and menus).

``session`` owns the scoped browser lifetime; ``stealth`` builds the
launch and context arguments.
"""
