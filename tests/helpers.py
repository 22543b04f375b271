"""Shared fakes for notify-relay tests.

Regular classes and functions (not fixtures) so test modules can import them
directly, the same way conftest.py does.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

import httpx

from notify_relay.context import RelayContext
from notify_relay.dispatch import Dispatcher
from notify_relay.errors import SessionNotReady
from notify_relay.infra.settings import Settings
from notify_relay.media.pipeline import MediaPipeline
from notify_relay.media.poster import PosterRenderer
from notify_relay.media.render import PageRenderer
from notify_relay.whatsapp.models import ConnectionUpdate, PairingState, SessionState

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png-body"


async def settle(ticks: int = 25) -> None:
    """Let queued callbacks and tasks run."""
    for _ in range(ticks):
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# WhatsApp connection fakes
# ---------------------------------------------------------------------------


class FakeConnection:
    def __init__(self, send_error: Exception | None = None, hold_start: bool = False):
        self.emit = None
        self.hold_start = hold_start
        self.start_cancelled = False
        self.sent: list[tuple[str, object]] = []
        self.close_calls = 0
        self.send_error = send_error

    async def start(self, emit):
        self.emit = emit
        if self.hold_start:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.start_cancelled = True
                raise

    async def send(self, jid, message):
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((jid, message))

    async def close(self):
        self.close_calls += 1

    # Test drivers
    def qr(self, value: str) -> None:
        self.emit(ConnectionUpdate(kind="qr", qr=value))

    def open(self) -> None:
        self.emit(ConnectionUpdate(kind="open"))

    def drop(self, status_code: int | None = 500, detail: str = "stream errored") -> None:
        self.emit(ConnectionUpdate(kind="close", status_code=status_code, detail=detail))


class FakeConnectionFactory:
    """Connection factory that records every handle it builds."""

    def __init__(self, failures: int = 0, send_error: Exception | None = None, hold_start: bool = False):
        self.connections: list[FakeConnection] = []
        self.calls = 0
        self.failures = failures
        self.send_error = send_error
        self.hold_start = hold_start

    async def __call__(self) -> FakeConnection:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("network unreachable")
        conn = FakeConnection(send_error=self.send_error, hold_start=self.hold_start)
        self.connections.append(conn)
        return conn

    @property
    def latest(self) -> FakeConnection:
        return self.connections[-1]


class StubSession:
    """Stand-in for SessionManager in HTTP-level tests."""

    def __init__(self, state: SessionState = SessionState.CONNECTED, send_error: Exception | None = None):
        self.state = state
        self.challenge: str | None = None
        self.sent: list[tuple[str, object]] = []
        self.send_error = send_error

    async def start(self):
        pass

    async def stop(self):
        pass

    def current_pairing_state(self) -> PairingState:
        if self.state is SessionState.CONNECTED:
            return PairingState(status="connected", session_state=self.state)
        if self.state is SessionState.AWAITING_PAIRING and self.challenge:
            return PairingState(status="awaiting_pairing", session_state=self.state, challenge=self.challenge)
        return PairingState(status="initializing", session_state=self.state)

    async def send(self, jid, message):
        if self.state is not SessionState.CONNECTED:
            raise SessionNotReady(f"session is {self.state.value}")
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((jid, message))


# ---------------------------------------------------------------------------
# Playwright fakes
# ---------------------------------------------------------------------------


class FakePage:
    def __init__(self, browser: "FakeBrowser"):
        self.browser = browser

    async def goto(self, url, wait_until=None, timeout=None):
        self.browser.gotos.append((url, wait_until, timeout))
        if self.browser.goto_error is not None:
            raise self.browser.goto_error

    async def screenshot(self, full_page=False, type=None):
        self.browser.screenshots.append({"full_page": full_page, "type": type})
        return self.browser.screenshot_bytes


class FakeBrowser:
    def __init__(self, screenshot_bytes: bytes = PNG_BYTES, goto_error: Exception | None = None):
        self.screenshot_bytes = screenshot_bytes
        self.goto_error = goto_error
        self.viewports: list[dict] = []
        self.gotos: list[tuple] = []
        self.screenshots: list[dict] = []
        self.close_calls = 0

    async def new_page(self, viewport=None):
        self.viewports.append(viewport)
        return FakePage(self)

    async def close(self):
        self.close_calls += 1


class FakeChromium:
    def __init__(self, browser: FakeBrowser):
        self.browser = browser
        self.launches: list[dict] = []

    async def launch(self, **kwargs):
        self.launches.append(kwargs)
        return self.browser


class FakePlaywright:
    """Callable replacement for ``async_playwright``."""

    def __init__(self, browser: FakeBrowser | None = None):
        self.browser = browser or FakeBrowser()
        self.chromium = FakeChromium(self.browser)

    @asynccontextmanager
    async def _session(self):
        yield self

    def __call__(self):
        return self._session()


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def mock_http_factory(handler):
    """httpx client factory whose requests are answered by ``handler``."""
    return lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler))


def image_handler(request: httpx.Request) -> httpx.Response:
    """Serve PNG_BYTES as image/png for both HEAD and GET."""
    if request.method == "HEAD":
        return httpx.Response(200, headers={"content-type": "image/png"})
    return httpx.Response(200, headers={"content-type": "image/png"}, content=PNG_BYTES)


def html_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, headers={"content-type": "text/html; charset=utf-8"})


def make_pipeline(handler=image_handler, playwright: FakePlaywright | None = None) -> MediaPipeline:
    return MediaPipeline(
        renderer=PageRenderer(settle_delay=0, playwright_factory=playwright or FakePlaywright()),
        poster=PosterRenderer(),
        http_client_factory=mock_http_factory(handler),
    )


def make_context(session=None, pipeline: MediaPipeline | None = None, settings: Settings | None = None) -> RelayContext:
    session = session if session is not None else StubSession()
    return RelayContext(
        settings=settings or Settings(),
        session=session,
        dispatcher=Dispatcher(session, pipeline or make_pipeline()),
    )
