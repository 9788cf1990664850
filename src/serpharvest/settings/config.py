"""Configuration loader for serpharvest using Pydantic settings.

Config precedence (highest wins):
  1. CLI flags / API request fields (where applicable)
  2. Environment variables (SERPHARVEST_* with __ for nesting)
  3. settings.local.toml
  4. settings.<env>.toml
  5. settings.default.toml
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = Path(os.getenv("SERPHARVEST_PROJECT_ROOT", _THIS_DIR.parents[2]))
CONFIG_DIR = PROJECT_ROOT / "config"

ENV_VAR_NAME = "SERPHARVEST_ENV"
DEFAULT_ENV = "local"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _resolve_env() -> str:
    return (os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _load_toml(path: Path) -> dict[str, Any]:
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class BrowserSettings(BaseSettings):
    """Playwright browser settings."""

    model_config = SettingsConfigDict(env_prefix="SERPHARVEST_BROWSER__")

    headless: bool = True
    sandbox: bool = False
    viewport_width: int = 1920
    viewport_height: int = 1080
    user_agent: str = DEFAULT_USER_AGENT
    locale: str = "en-US"
    timeout_ms: int = 30_000
    navigation_timeout_ms: int = 30_000


class SearchSettings(BaseSettings):
    """Search-engine targeting and search-pass defaults."""

    model_config = SettingsConfigDict(env_prefix="SERPHARVEST_SEARCH__")

    engine_url: str = "https://www.google.com"
    query_input_selector: str = 'textarea[name="q"], input[name="q"]'
    consent_selector: str = 'button[aria-label="Accept all"]'
    consent_timeout_ms: int = 5_000
    next_page_selector: str = "a#pnnext"
    num_pages: int = 5
    min_delay: float = 1.0
    max_delay: float = 3.0
    max_links_per_page: int = 0  # 0 = unlimited
    excluded_hosts: list[str] = Field(default_factory=lambda: ["google.com", "youtube.com"])
    excluded_path_keywords: list[str] = Field(default_factory=lambda: ["help"])


class InteractionSettings(BaseSettings):
    """Human-like timing and pointer/scroll behaviour."""

    model_config = SettingsConfigDict(env_prefix="SERPHARVEST_INTERACTION__")

    typing_delay_min_ms: int = 100
    typing_delay_max_ms: int = 300
    mouse_steps: int = 10
    mouse_jitter_px: int = 10
    mouse_step_pause_min: float = 0.05
    mouse_step_pause_max: float = 0.1
    scroll_steps: int = 3
    scroll_min_px: int = 100
    scroll_max_px: int = 300
    submit_pause_min: float = 0.5
    submit_pause_max: float = 1.5


class EnrichmentSettings(BaseSettings):
    """Dropdown / select interaction during the enrichment pass."""

    model_config = SettingsConfigDict(env_prefix="SERPHARVEST_ENRICHMENT__")

    trigger_selectors: list[str] = Field(
        default_factory=lambda: [
            '[role="combobox"]',
            '[aria-haspopup="listbox"]',
            ".dropdown-toggle",
            '[data-toggle="dropdown"]',
            '[class*="dropdown"]',
            '[class*="select"]',
        ]
    )
    menu_selectors: list[str] = Field(
        default_factory=lambda: ['[role="menu"]', '[role="listbox"]', ".dropdown-menu"]
    )
    menu_item_selectors: list[str] = Field(default_factory=lambda: ['[role="option"]', ".dropdown-item"])
    menu_checkbox_selector: str = 'input[type="checkbox"]'
    select_all_pattern: str = "all|semua|seluruh"
    settle_timeout_ms: int = 5_000
    expand_wait_ms: int = 500
    click_timeout_ms: int = 2_000
    max_triggers: int = 25


class OutputSettings(BaseSettings):
    """Where result files are written."""

    model_config = SettingsConfigDict(env_prefix="SERPHARVEST_OUTPUT__")

    results_dir: str = "data/results"


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="SERPHARVEST_API__")

    host: str = "0.0.0.0"
    port: int = 3000
    prefix: str = "/api"
    cors_origins: list[str] = ["*"]
    rate_limit_requests: int = 100
    rate_limit_window_sec: int = 900


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Root serpharvest settings with nested sections."""

    model_config = SettingsConfigDict(
        env_prefix="SERPHARVEST_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    env: str = Field(default_factory=_resolve_env)
    project_root: Path = Field(default=PROJECT_ROOT)
    debug: bool = False
    log_level: str = "INFO"
    log_format: str = "text"  # text | json

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    interaction: InteractionSettings = Field(default_factory=InteractionSettings)
    enrichment: EnrichmentSettings = Field(default_factory=EnrichmentSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="before")
    @classmethod
    def _merge_toml_files(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Layer TOML config files before env var overrides."""
        defaults = _load_toml(CONFIG_DIR / "settings.default.toml")
        env_name = (values.get("env") or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()
        env_overrides = _load_toml(CONFIG_DIR / f"settings.{env_name}.toml")
        local_overrides = _load_toml(CONFIG_DIR / "settings.local.toml")

        # Merge: defaults < env-specific < local < explicit values
        merged: dict[str, Any] = {}
        for layer in (defaults, env_overrides, local_overrides, values):
            for key, val in layer.items():
                if isinstance(val, dict) and isinstance(merged.get(key), dict):
                    merged[key] = {**merged[key], **val}
                else:
                    merged[key] = val
        return merged

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Normalize relative paths against project_root."""
        if not Path(self.output.results_dir).is_absolute():
            self.output.results_dir = str(self.project_root / self.output.results_dir)
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton settings instance (cached)."""
    return Settings()
