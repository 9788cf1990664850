"""Settings package: pydantic-settings backed configuration."""

from serpharvest.settings.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
