"""Shared pytest fixtures for notify-relay tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402

from .helpers import FakeConnectionFactory, StubSession  # noqa: E402


@pytest.fixture
def connection_factory():
    """Factory recording every fake WhatsApp connection it builds."""
    return FakeConnectionFactory()


@pytest.fixture
def stub_session():
    """Connected stand-in session that records sends."""
    return StubSession()


@pytest.fixture(autouse=True)
def _clean_relay_env(monkeypatch):
    """Keep host environment variables from leaking into Settings.from_env()."""
    for name in (
        "PORT",
        "HOST",
        "WA_AUTH_FOLDER",
        "WA_RECONNECT_DELAY",
        "WA_PRINT_QR",
        "MEDIA_PROBE_TIMEOUT",
        "MEDIA_FETCH_TIMEOUT",
        "RENDER_TIMEOUT",
        "RENDER_SETTLE_DELAY",
        "RENDER_VIEWPORT",
        "POSTER_BACKGROUND_PATH",
        "POSTER_FONT_PATH",
        "POSTER_UNIT_PRICE",
        "KEEPALIVE_URL",
        "KEEPALIVE_INTERVAL",
        "APP_VERSION",
    ):
        monkeypatch.delenv(name, raising=False)
