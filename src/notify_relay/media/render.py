"""Render fallback: screenshot a page with an isolated headless Chromium.

Each call launches its own browser and closes it on every exit path, so
concurrent requests never share (or leak) a browser process.
"""

import asyncio
from typing import Any, Callable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from notify_relay.errors import RenderFailed
from notify_relay.observability.logging import get_logger

from .models import AcquisitionMethod, ImageBuffer

logger = get_logger(__name__)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-gpu",
    "--disable-dev-shm-usage",
    "--disable-extensions",
    "--no-first-run",
    "--no-default-browser-check",
]


class PageRenderer:
    """Screenshots URLs whose declared type is not a plain image."""

    def __init__(
        self,
        *,
        viewport: tuple[int, int] = (1280, 720),
        timeout: float = 30.0,
        settle_delay: float = 2.0,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        self.viewport = viewport
        self.timeout = timeout
        self.settle_delay = settle_delay
        self._playwright_factory = playwright_factory

    async def render(self, url: str) -> ImageBuffer:
        """Load ``url``, wait for network quiescence, return a full-page PNG.

        Raises:
            RenderFailed: If the browser cannot launch, navigate or capture.
        """
        width, height = self.viewport
        try:
            async with self._playwright_factory() as p:
                browser = await p.chromium.launch(headless=True, args=CHROMIUM_ARGS)
                try:
                    page = await browser.new_page(viewport={"width": width, "height": height})
                    await page.goto(url, wait_until="networkidle", timeout=self.timeout * 1000)
                    await asyncio.sleep(self.settle_delay)
                    data = await page.screenshot(full_page=True, type="png")
                finally:
                    await browser.close()
        except PlaywrightError as exc:
            raise RenderFailed(f"{type(exc).__name__}: {exc}") from exc
        except Exception as exc:
            logger.exception(
                "page render crashed",
                extra={"extra_fields": {"error_type": type(exc).__name__}},
            )
            raise RenderFailed(f"{type(exc).__name__}: {exc}") from exc

        logger.info(
            "page rendered",
            extra={"extra_fields": {"bytes": len(data), "viewport": f"{width}x{height}"}},
        )
        return ImageBuffer(data=data, method=AcquisitionMethod.RENDERED, mimetype="image/png")
