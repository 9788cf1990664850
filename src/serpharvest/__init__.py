"""SERP Harvester: human-paced search-results link harvesting and enrichment."""

from __future__ import annotations

try:
    from importlib.metadata import version

    __version__ = version("serpharvest")
except Exception:
    __version__ = "0.0.0"
