"""Template rasterizer: composite poster fields onto a fixed background."""

import asyncio
import io
from datetime import datetime

from PIL import Image, ImageDraw, ImageFont

from notify_relay.errors import MediaError
from notify_relay.infra.time import watermark_timestamp
from notify_relay.observability.logging import get_logger

from .models import AcquisitionMethod, ImageBuffer, PosterRequest

logger = get_logger(__name__)

POSTER_SIZE = (1080, 1080)
BACKGROUND_COLOR = (18, 32, 58)
TEXT_COLOR = (255, 255, 255)
WATERMARK_COLOR = (200, 200, 200)
JPEG_QUALITY = 90

# Top-left anchors of each field, in poster pixels
NAME_POS = (120, 420)
QUANTITY_POS = (120, 560)
AMOUNT_POS = (120, 660)
WATERMARK_MARGIN = 28

NAME_FONT_SIZE = 72
FIELD_FONT_SIZE = 54
WATERMARK_FONT_SIZE = 26


def _load_font(path: str | None, size: int):
    if path:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            logger.warning("poster font unreadable, using default", extra={"extra_fields": {"size": size}})
    return ImageFont.load_default(size=size)


class PosterRenderer:
    """Draws name, quantity and amount onto the background asset.

    The background is loaded once and resized to POSTER_SIZE; without an
    asset a flat canvas of the same size is used.
    """

    def __init__(self, background_path: str | None = None, font_path: str | None = None) -> None:
        self.background_path = background_path
        self.font_path = font_path
        self._background: Image.Image | None = None

    def _base_image(self) -> Image.Image:
        if self._background is None:
            if self.background_path:
                with Image.open(self.background_path) as src:
                    self._background = src.convert("RGB").resize(POSTER_SIZE)
            else:
                self._background = Image.new("RGB", POSTER_SIZE, BACKGROUND_COLOR)
        return self._background.copy()

    def render_sync(self, request: PosterRequest, now: datetime | None = None) -> ImageBuffer:
        img = self._base_image()
        draw = ImageDraw.Draw(img)

        name_font = _load_font(self.font_path, NAME_FONT_SIZE)
        field_font = _load_font(self.font_path, FIELD_FONT_SIZE)
        mark_font = _load_font(self.font_path, WATERMARK_FONT_SIZE)

        draw.text(NAME_POS, request.name.upper(), font=name_font, fill=TEXT_COLOR)
        draw.text(QUANTITY_POS, f"Quantity: {request.quantity}", font=field_font, fill=TEXT_COLOR)
        draw.text(AMOUNT_POS, f"Amount: {request.amount}", font=field_font, fill=TEXT_COLOR)

        stamp = watermark_timestamp(now)
        left, top, right, bottom = draw.textbbox((0, 0), stamp, font=mark_font)
        x = POSTER_SIZE[0] - WATERMARK_MARGIN - (right - left)
        y = POSTER_SIZE[1] - WATERMARK_MARGIN - (bottom - top)
        draw.text((x, y), stamp, font=mark_font, fill=WATERMARK_COLOR)

        out = io.BytesIO()
        img.save(out, format="JPEG", quality=JPEG_QUALITY)
        return ImageBuffer(data=out.getvalue(), method=AcquisitionMethod.TEMPLATED, mimetype="image/jpeg")

    async def render(self, request: PosterRequest) -> ImageBuffer:
        # Pillow work is CPU-bound; keep it off the event loop
        try:
            buffer = await asyncio.to_thread(self.render_sync, request)
        except OSError as exc:
            raise MediaError(f"poster rasterization failed: {type(exc).__name__}") from exc
        except Exception as exc:
            logger.exception(
                "poster rasterization crashed",
                extra={"extra_fields": {"error_type": type(exc).__name__}},
            )
            raise MediaError(f"poster rasterization failed: {type(exc).__name__}") from exc
        logger.info(
            "poster rasterized",
            extra={"extra_fields": {"bytes": buffer.size, "quantity": request.quantity}},
        )
        return buffer
