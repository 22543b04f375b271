"""WhatsApp session and message models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Union

# Baileys DisconnectReason.loggedOut
LOGGED_OUT_STATUS = 401


class SessionState(str, Enum):
    """Lifecycle of the single WhatsApp connection."""

    CONNECTING = "connecting"
    AWAITING_PAIRING = "awaiting_pairing"
    CONNECTED = "connected"
    CLOSED = "closed"


@dataclass(frozen=True)
class TextMessage:
    text: str


@dataclass(frozen=True)
class ImageMessage:
    """Image payload. ``data`` is the raw encoded image (JPEG/PNG)."""

    data: bytes = field(repr=False)
    mimetype: str = "image/jpeg"
    caption: str | None = None


OutboundMessage = Union[TextMessage, ImageMessage]


@dataclass(frozen=True)
class ConnectionUpdate:
    """One lifecycle event emitted by a connection handle.

    kind:
        "qr": a new pairing challenge is available in ``qr``.
        "open": the session authenticated.
        "close": the socket closed; ``status_code``/``detail`` describe why.
    """

    kind: Literal["qr", "open", "close"]
    qr: str | None = None
    status_code: int | None = None
    detail: str = ""

    @property
    def logged_out(self) -> bool:
        return self.kind == "close" and self.status_code == LOGGED_OUT_STATUS


@dataclass(frozen=True)
class PairingState:
    """Read-only view for status pages.

    ``status`` is one of "connected", "awaiting_pairing" or "initializing";
    ``challenge`` is only set while awaiting pairing.
    """

    status: Literal["connected", "awaiting_pairing", "initializing"]
    session_state: SessionState
    challenge: str | None = None
