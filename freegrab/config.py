"""Configuration helpers for the freegrab page generator."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlencode

FAVICON_PATH = Path("favicon.png")

DEFAULT_STORE_URL = "https://store.epicgames.com"
DEFAULT_CATALOG_ENDPOINT = (
    "https://store-site-backend-static-ipv4.ak.epicgames.com/freeGamesPromotions"
)
DEFAULT_CONTENT_ENDPOINT = "https://store-content-ipv4.ak.epicgames.com/api"
DEFAULT_LOCALE = "zh-CN"
DEFAULT_COUNTRY = "CN"
DEFAULT_TIMEOUT = 20.0
DEFAULT_MAX_WORKERS = 8
DEFAULT_DISPLAY_OFFSET_HOURS = 8


@dataclass(frozen=True)
class Settings:
    """Endpoints and presentation options for a single run."""

    locale: str = DEFAULT_LOCALE
    country: str = DEFAULT_COUNTRY
    store_url: str = DEFAULT_STORE_URL
    catalog_endpoint: str = DEFAULT_CATALOG_ENDPOINT
    content_endpoint: str = DEFAULT_CONTENT_ENDPOINT
    timeout: float = DEFAULT_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS
    display_offset_hours: int = DEFAULT_DISPLAY_OFFSET_HOURS
    site_title: str = "EPIC 每周免费游戏"
    github_user: str | None = "VarleyT"

    @property
    def catalog_url(self) -> str:
        query = urlencode(
            {
                "locale": self.locale,
                "country": self.country,
                "allowCountries": self.country,
            }
        )
        return f"{self.catalog_endpoint}?{query}"

    @property
    def content_base_url(self) -> str:
        return f"{self.content_endpoint.rstrip('/')}/{self.locale}/content"

    @property
    def store_base_url(self) -> str:
        return f"{self.store_url.rstrip('/')}/{self.locale}"

    @property
    def fallback_link(self) -> str:
        return f"{self.store_base_url}/free-games"


def _env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


def _env_int(name: str, default: int, *, minimum: int | None = None) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def load_settings() -> Settings:
    """Build settings from ``FREEGRAB_*`` environment variables."""

    github_user = _env("FREEGRAB_GITHUB_USER", "VarleyT")
    if github_user and github_user.lower() in {"none", "off"}:
        github_user = None
    return Settings(
        locale=_env("FREEGRAB_LOCALE", DEFAULT_LOCALE) or DEFAULT_LOCALE,
        country=(_env("FREEGRAB_COUNTRY", DEFAULT_COUNTRY) or DEFAULT_COUNTRY).upper(),
        store_url=_env("FREEGRAB_STORE_URL", DEFAULT_STORE_URL) or DEFAULT_STORE_URL,
        catalog_endpoint=_env("FREEGRAB_CATALOG_ENDPOINT", DEFAULT_CATALOG_ENDPOINT)
        or DEFAULT_CATALOG_ENDPOINT,
        content_endpoint=_env("FREEGRAB_CONTENT_ENDPOINT", DEFAULT_CONTENT_ENDPOINT)
        or DEFAULT_CONTENT_ENDPOINT,
        timeout=_env_float("FREEGRAB_TIMEOUT", DEFAULT_TIMEOUT),
        max_workers=_env_int("FREEGRAB_MAX_WORKERS", DEFAULT_MAX_WORKERS, minimum=1),
        display_offset_hours=_env_int(
            "FREEGRAB_DISPLAY_OFFSET_HOURS", DEFAULT_DISPLAY_OFFSET_HOURS
        ),
        site_title=_env("FREEGRAB_SITE_TITLE", Settings.site_title) or Settings.site_title,
        github_user=github_user,
    )
