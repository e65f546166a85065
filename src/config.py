"""
Exporter Settings - Environment-Driven Configuration
====================================================

All runtime knobs are read from environment variables once, by
``get_settings()``, and passed explicitly to the components that need them.

Environment Variables:
    FBREF_URL: page to scrape (default: Premier League stats page)
    EXPORTER_ADDR: listen address (default: "0.0.0.0")
    EXPORTER_PORT: listen port (default: 2113)
    SCRAPE_INTERVAL_SECONDS: delay between scrape cycles (default: 3600)
    REQUEST_TIMEOUT: per-attempt HTTP timeout in seconds (default: 25)
    MAX_RETRIES: fetch attempts per cycle (default: 3)
    RETRY_BACKOFF_SECONDS: backoff multiplier between attempts (default: 2)
    IMPERSONATE: curl_cffi browser fingerprint (default: "chrome120")
    LOG_LEVEL: logging level name (default: "INFO")
"""

from dataclasses import dataclass
from typing import Callable, Optional, TypeVar
import os

T = TypeVar("T")

DEFAULT_FBREF_URL = "https://fbref.com/en/comps/9/Premier-League-Stats"


@dataclass(frozen=True)
class Settings:
    """Resolved exporter configuration."""

    fbref_url: str = DEFAULT_FBREF_URL
    addr: str = "0.0.0.0"
    port: int = 2113
    scrape_interval: float = 3600.0
    request_timeout: float = 25.0
    max_retries: int = 3
    retry_backoff: float = 2.0
    impersonate: str = "chrome120"
    log_level: str = "INFO"


def _env(name: str, default: T, cast: Callable[[str], T]) -> T:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from e


def get_settings(port: Optional[int] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        port: optional override for EXPORTER_PORT (e.g. from the CLI).

    Raises:
        ValueError: if a numeric variable cannot be parsed or is out of range.
    """
    settings = Settings(
        fbref_url=_env("FBREF_URL", DEFAULT_FBREF_URL, str),
        addr=_env("EXPORTER_ADDR", "0.0.0.0", str),
        port=port if port is not None else _env("EXPORTER_PORT", 2113, int),
        scrape_interval=_env("SCRAPE_INTERVAL_SECONDS", 3600.0, float),
        request_timeout=_env("REQUEST_TIMEOUT", 25.0, float),
        max_retries=_env("MAX_RETRIES", 3, int),
        retry_backoff=_env("RETRY_BACKOFF_SECONDS", 2.0, float),
        impersonate=_env("IMPERSONATE", "chrome120", str),
        log_level=_env("LOG_LEVEL", "INFO", str).upper(),
    )

    if settings.max_retries < 1:
        raise ValueError(f"MAX_RETRIES must be at least 1, got {settings.max_retries}")
    if settings.scrape_interval <= 0:
        raise ValueError(
            f"SCRAPE_INTERVAL_SECONDS must be positive, got {settings.scrape_interval}"
        )
    if not 0 < settings.port < 65536:
        raise ValueError(f"EXPORTER_PORT out of range: {settings.port}")

    return settings
