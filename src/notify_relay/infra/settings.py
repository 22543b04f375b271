"""Process configuration loaded from environment variables.

All knobs are read once at startup by ``Settings.from_env()``. Numeric values
that do not parse fail fast with RuntimeError.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

APP_VERSION = "1.0.0"

DEFAULT_AUTH_FOLDER = "auth_info_baileys"
DEFAULT_VIEWPORT = (1280, 720)

_TRUTHY = {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"Invalid config: {name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Invalid config: {name} must be an integer, got {raw!r}") from None


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _TRUTHY


def parse_viewport(raw: str) -> tuple[int, int]:
    """Parse a ``WIDTHxHEIGHT`` string (e.g. ``1280x720``)."""
    try:
        width, height = (int(part) for part in raw.lower().split("x", 1))
    except ValueError:
        raise RuntimeError(f"Invalid config: RENDER_VIEWPORT must look like 1280x720, got {raw!r}") from None
    if width <= 0 or height <= 0:
        raise RuntimeError(f"Invalid config: RENDER_VIEWPORT must be positive, got {raw!r}")
    return width, height


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the relay.

    Attributes:
        host / port: uvicorn bind address.
        auth_folder: Credential folder owned by the WhatsApp protocol library.
        reconnect_delay: Seconds to wait before replacing a dropped connection.
        print_qr: Also print the pairing QR as ASCII art on stdout.
        probe_timeout / fetch_timeout: httpx timeouts for the media tiers.
        render_timeout / render_settle_delay: headless navigation bound and
            the pause allowed for late-rendering content.
        render_viewport: Browser viewport for the render fallback.
        poster_*: Template rasterizer inputs.
        keepalive_url / keepalive_interval: Optional self-ping.
    """

    host: str = "0.0.0.0"
    port: int = 3000
    auth_folder: str = DEFAULT_AUTH_FOLDER
    reconnect_delay: float = 1.0
    print_qr: bool = False
    probe_timeout: float = 10.0
    fetch_timeout: float = 30.0
    render_timeout: float = 30.0
    render_settle_delay: float = 2.0
    render_viewport: tuple[int, int] = DEFAULT_VIEWPORT
    poster_background_path: str | None = None
    poster_font_path: str | None = None
    poster_unit_price: int = 100
    keepalive_url: str | None = None
    keepalive_interval: float = 840.0
    version: str = APP_VERSION

    @classmethod
    def from_env(cls) -> Settings:
        viewport_raw = os.environ.get("RENDER_VIEWPORT", "")
        return cls(
            host=os.environ.get("HOST", "0.0.0.0"),
            port=_env_int("PORT", 3000),
            auth_folder=os.environ.get("WA_AUTH_FOLDER", DEFAULT_AUTH_FOLDER),
            reconnect_delay=_env_float("WA_RECONNECT_DELAY", 1.0),
            print_qr=_env_bool("WA_PRINT_QR"),
            probe_timeout=_env_float("MEDIA_PROBE_TIMEOUT", 10.0),
            fetch_timeout=_env_float("MEDIA_FETCH_TIMEOUT", 30.0),
            render_timeout=_env_float("RENDER_TIMEOUT", 30.0),
            render_settle_delay=_env_float("RENDER_SETTLE_DELAY", 2.0),
            render_viewport=parse_viewport(viewport_raw) if viewport_raw else DEFAULT_VIEWPORT,
            poster_background_path=os.environ.get("POSTER_BACKGROUND_PATH") or None,
            poster_font_path=os.environ.get("POSTER_FONT_PATH") or None,
            poster_unit_price=_env_int("POSTER_UNIT_PRICE", 100),
            keepalive_url=os.environ.get("KEEPALIVE_URL") or None,
            keepalive_interval=_env_float("KEEPALIVE_INTERVAL", 840.0),
            version=os.environ.get("APP_VERSION", APP_VERSION),
        )
