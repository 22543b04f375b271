"""Media acquisition: turn a MediaRequest into a validated ImageBuffer.

Tiers:
    PosterRequest            -> poster rasterizer (no network)
    URL probed as image      -> direct fetch
    URL probed html/unknown  -> headless render

The declared Content-Type is trusted; bytes are never sniffed.
"""

from __future__ import annotations

from typing import Callable

import httpx

from notify_relay.errors import EmptyMedia
from notify_relay.observability.logging import get_logger

from . import remote
from .models import ContentKind, ImageBuffer, MediaRequest, PosterRequest, UrlMediaRequest
from .poster import PosterRenderer
from .render import PageRenderer

logger = get_logger(__name__)

USER_AGENT = "notify-relay/1.0"


def default_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(headers={"User-Agent": USER_AGENT})


class MediaPipeline:
    def __init__(
        self,
        *,
        renderer: PageRenderer,
        poster: PosterRenderer,
        probe_timeout: float = 10.0,
        fetch_timeout: float = 30.0,
        http_client_factory: Callable[[], httpx.AsyncClient] = default_http_client,
    ) -> None:
        self.renderer = renderer
        self.poster = poster
        self.probe_timeout = probe_timeout
        self.fetch_timeout = fetch_timeout
        self._http_client_factory = http_client_factory

    async def acquire(self, request: MediaRequest) -> ImageBuffer:
        """Acquire the image for ``request``.

        Raises:
            ProbeFailed, FetchFailed, RenderFailed: From the URL tiers.
            EmptyMedia: If the chosen tier produced zero bytes.
        """
        if isinstance(request, PosterRequest):
            buffer = await self.poster.render(request)
        elif isinstance(request, UrlMediaRequest):
            buffer = await self._acquire_url(request.url)
        else:
            raise TypeError(f"unsupported media request: {type(request).__name__}")

        if buffer.size == 0:
            raise EmptyMedia(f"{buffer.method.value} acquisition returned 0 bytes")

        logger.info(
            "media acquired",
            extra={"extra_fields": {"method": buffer.method.value, "bytes": buffer.size}},
        )
        return buffer

    async def _acquire_url(self, url: str) -> ImageBuffer:
        async with self._http_client_factory() as client:
            kind = await remote.probe(client, url, self.probe_timeout)
            if kind is ContentKind.IMAGE:
                return await remote.fetch_image(client, url, self.fetch_timeout)
        # html and unknown both fall back to a render
        return await self.renderer.render(url)
