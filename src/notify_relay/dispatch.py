"""Dispatch facade called by the HTTP handlers.

Security: NEVER log phone numbers, JIDs or message text. Only hashes and lengths.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from notify_relay.media.models import ImageBuffer, MediaRequest
from notify_relay.observability.logging import get_logger
from notify_relay.observability.redaction import hash_identifier
from notify_relay.whatsapp.models import ImageMessage, TextMessage
from notify_relay.whatsapp.targets import normalize_target

if TYPE_CHECKING:
    from notify_relay.media.pipeline import MediaPipeline
    from notify_relay.whatsapp.session import SessionManager

logger = get_logger(__name__)


class Dispatcher:
    def __init__(self, session: SessionManager, pipeline: MediaPipeline) -> None:
        self.session = session
        self.pipeline = pipeline

    async def send_text(self, phone: str, message: str) -> None:
        """Normalize the recipient and send a text message once.

        Raises:
            InvalidTarget: If ``phone`` has no digits.
            SessionNotReady: If WhatsApp is not connected.
            DeliveryFailed: If the send itself fails.
        """
        jid = normalize_target(phone)
        logger.info(
            "dispatching text",
            extra={"extra_fields": {"to_hash": hash_identifier(jid), "text_len": len(message)}},
        )
        await self.session.send(jid, TextMessage(text=message))

    async def send_media(self, phone: str, request: MediaRequest) -> ImageBuffer:
        """Acquire an image and send it with the request's caption.

        Acquisition errors propagate before any send is attempted.

        Returns:
            The buffer that was sent (for size/method reporting).
        """
        jid = normalize_target(phone)
        buffer = await self.pipeline.acquire(request)
        logger.info(
            "dispatching image",
            extra={
                "extra_fields": {
                    "to_hash": hash_identifier(jid),
                    "method": buffer.method.value,
                    "bytes": buffer.size,
                }
            },
        )
        await self.session.send(
            jid,
            ImageMessage(data=buffer.data, mimetype=buffer.mimetype, caption=request.caption or None),
        )
        return buffer
