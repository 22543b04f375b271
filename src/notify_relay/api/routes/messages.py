"""Outbound message routes.

Query parameters are validated here (400 on absence) rather than by FastAPI
so every failure shares the relay's JSON error body. Parameter checks run
before the session readiness check, so a malformed request gets 400 even
while the session is down (503 is reported only for well-formed requests).
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from notify_relay.dispatch import Dispatcher
from notify_relay.errors import MissingParameters
from notify_relay.media.models import PosterRequest, UrlMediaRequest

router = APIRouter(tags=["messages"])


class SendTextResponse(BaseModel):
    success: bool = True
    message: str = "Message sent"


class SendImageResponse(BaseModel):
    success: bool = True
    imageSize: int
    method: str


class SendPosterResponse(BaseModel):
    success: bool = True
    quantity: int
    amount: int
    imageSize: int


def _dispatcher(request: Request) -> Dispatcher:
    return request.app.state.relay.dispatcher


def _optional_int(name: str, raw: str | None) -> int | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        raise MissingParameters(f"{name} must be an integer") from None
    if value < 0:
        raise MissingParameters(f"{name} must not be negative")
    return value


@router.get("/send-otp", response_model=SendTextResponse)
async def send_otp(
    request: Request,
    phonenumber: str | None = None,
    message: str | None = None,
) -> SendTextResponse:
    """Send a plain text message (typically a one-time password)."""
    if not phonenumber or not message:
        raise MissingParameters("Missing phonenumber or message")

    await _dispatcher(request).send_text(phonenumber, message)
    return SendTextResponse()


@router.get("/send-image", response_model=SendImageResponse)
async def send_image(
    request: Request,
    imageUrl: str | None = None,
    mobile: str | None = None,
    caption: str | None = None,
) -> SendImageResponse:
    """Fetch or render ``imageUrl`` and send it as an image message."""
    if not imageUrl or not mobile:
        raise MissingParameters("Missing imageUrl or mobile")

    buffer = await _dispatcher(request).send_media(
        mobile, UrlMediaRequest(url=imageUrl, caption=caption)
    )
    return SendImageResponse(imageSize=buffer.size, method=buffer.method.value)


@router.get("/send-myl", response_model=SendPosterResponse)
async def send_poster(
    request: Request,
    name: str | None = None,
    mobile: str | None = None,
    quantity: str | None = None,
    amount: str | None = None,
    caption: str | None = None,
) -> SendPosterResponse:
    """Rasterize the poster template for ``name`` and send it."""
    if not name or not mobile:
        raise MissingParameters("Missing name or mobile")

    relay = request.app.state.relay
    poster = PosterRequest.create(
        name,
        unit_price=relay.settings.poster_unit_price,
        quantity=_optional_int("quantity", quantity),
        amount=_optional_int("amount", amount),
        caption=caption,
    )
    buffer = await relay.dispatcher.send_media(mobile, poster)
    return SendPosterResponse(quantity=poster.quantity, amount=poster.amount, imageSize=buffer.size)
