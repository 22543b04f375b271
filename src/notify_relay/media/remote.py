"""Content probe and direct fetch over httpx.

Security: URLs may carry tokens in their query string; log host only.
"""

from urllib.parse import urlsplit

import httpx

from notify_relay.errors import FetchFailed, ProbeFailed
from notify_relay.observability.logging import get_logger

from .models import AcquisitionMethod, ContentKind, ImageBuffer

logger = get_logger(__name__)

_HTML_TYPES = ("text/html", "application/xhtml+xml")


def _host(url: str) -> str:
    return urlsplit(url).hostname or ""


def _require_http_url(url: str) -> None:
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise ProbeFailed(f"InvalidURL: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ProbeFailed("InvalidURL: expected an absolute http(s) URL with a host")


def classify_content_type(content_type: str | None) -> ContentKind:
    """Classify a declared Content-Type header value."""
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if mime.startswith("image/"):
        return ContentKind.IMAGE
    if mime in _HTML_TYPES:
        return ContentKind.HTML
    return ContentKind.UNKNOWN


async def probe(client: httpx.AsyncClient, url: str, timeout: float) -> ContentKind:
    """Classify ``url`` with a HEAD request.

    A timeout counts as inconclusive (UNKNOWN) so the render tier can try.

    Raises:
        ProbeFailed: If the URL is malformed or the request fails without
            producing a response.
    """
    _require_http_url(url)
    try:
        response = await client.head(url, follow_redirects=True, timeout=timeout)
    except httpx.TimeoutException:
        logger.warning("content probe timed out", extra={"extra_fields": {"host": _host(url)}})
        return ContentKind.UNKNOWN
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise ProbeFailed(f"{type(exc).__name__}: {exc}") from exc

    kind = classify_content_type(response.headers.get("content-type"))
    logger.info(
        "content probed",
        extra={
            "extra_fields": {
                "host": _host(url),
                "status": response.status_code,
                "kind": kind.value,
            }
        },
    )
    return kind


async def fetch_image(client: httpx.AsyncClient, url: str, timeout: float) -> ImageBuffer:
    """Download the image body as-is.

    Raises:
        FetchFailed: On transport errors or a non-2xx status.
    """
    try:
        response = await client.get(url, follow_redirects=True, timeout=timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchFailed(f"{type(exc).__name__}: {exc}") from exc

    if not response.is_success:
        raise FetchFailed(f"HTTP {response.status_code} fetching image")

    mimetype = (response.headers.get("content-type") or "image/jpeg").split(";", 1)[0].strip()
    return ImageBuffer(data=response.content, method=AcquisitionMethod.DIRECT, mimetype=mimetype)
