from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return int(default)
    try:
        return int(str(raw).strip())
    except ValueError:
        return int(default)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return float(default)
    try:
        return float(str(raw).strip())
    except ValueError:
        return float(default)


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return str(default)
    s = str(raw).strip()
    return s if s else str(default)


def _env_csv(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    return tuple(o.strip() for o in raw.split(",") if o.strip())


@dataclass(frozen=True)
class Settings:
    # Where captured PNGs are written, and the URL prefix they are served under.
    screenshot_dir: str = field(default_factory=lambda: _env_str("SITEWATCH_SCREENSHOT_DIR", "public/screenshots"))
    screenshot_url_prefix: str = field(
        default_factory=lambda: _env_str("SITEWATCH_SCREENSHOT_URL_PREFIX", "/screenshots").rstrip("/")
    )

    probe_timeout_s: float = field(default_factory=lambda: _env_float("SITEWATCH_PROBE_TIMEOUT_S", 30.0))
    tls_timeout_s: float = field(default_factory=lambda: _env_float("SITEWATCH_TLS_TIMEOUT_S", 5.0))
    navigation_timeout_ms: int = field(default_factory=lambda: _env_int("SITEWATCH_NAVIGATION_TIMEOUT_MS", 30000))
    settle_delay_ms: int = field(default_factory=lambda: _env_int("SITEWATCH_SETTLE_DELAY_MS", 2000))
    user_agent: str = field(default_factory=lambda: _env_str("SITEWATCH_USER_AGENT", DEFAULT_USER_AGENT))

    # Number of batches allowed to drive browsers at the same time.
    batch_concurrency: int = field(default_factory=lambda: max(1, _env_int("SITEWATCH_BATCH_CONCURRENCY", 1)))
    batch_acquire_timeout_s: float = field(
        default_factory=lambda: _env_float("SITEWATCH_BATCH_ACQUIRE_TIMEOUT_S", 1.0)
    )

    cors_origins: tuple[str, ...] = field(
        default_factory=lambda: _env_csv("SITEWATCH_CORS_ORIGINS", ("http://localhost:3000",))
    )
    log_level: str = field(default_factory=lambda: _env_str("SITEWATCH_LOG_LEVEL", "INFO").upper())
