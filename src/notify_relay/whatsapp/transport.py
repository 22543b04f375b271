"""Connection handles to the WhatsApp network.

The session manager only depends on the ``Connection`` protocol below. The
production handle wraps the ``pyaileys`` client (a Baileys-compatible
multi-device implementation); its wire protocol, crypto and credential files
are owned entirely by that library.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

from notify_relay.observability.logging import get_logger

from .models import ConnectionUpdate, ImageMessage, OutboundMessage, TextMessage

logger = get_logger(__name__)

EmitUpdate = Callable[[ConnectionUpdate], None]


class Connection(Protocol):
    """One connection attempt. Never reused after it closes."""

    async def start(self, emit: EmitUpdate) -> None:
        """Begin connecting; lifecycle events are reported through ``emit``."""

    async def send(self, jid: str, message: OutboundMessage) -> None:
        """Deliver one message. Raises on rejection or transport error."""

    async def close(self) -> None:
        """Release the socket."""


ConnectionFactory = Callable[[], Awaitable[Connection]]


def _lookup(obj: Any, *names: str) -> Any:
    for name in names:
        if isinstance(obj, dict):
            if obj.get(name) is not None:
                return obj[name]
        elif getattr(obj, name, None) is not None:
            return getattr(obj, name)
    return None


def _disconnect_status(last_disconnect: Any) -> int | None:
    """Find the status code of a close, Boom-style (error.output.statusCode) or flat."""
    if last_disconnect is None:
        return None
    code = _lookup(last_disconnect, "statusCode", "status_code")
    error = _lookup(last_disconnect, "error")
    if code is None and error is not None:
        code = _lookup(error, "statusCode", "status_code")
        if code is None:
            code = _lookup(_lookup(error, "output") or {}, "statusCode", "status_code")
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


def parse_connection_update(update: Any) -> ConnectionUpdate | None:
    """Translate a library ``connection.update`` payload into a ConnectionUpdate.

    Returns None for updates the lifecycle does not react to
    (e.g. ``connection="connecting"`` with no QR).
    """
    qr = _lookup(update, "qr")
    if qr:
        return ConnectionUpdate(kind="qr", qr=str(qr))

    connection = _lookup(update, "connection")
    if connection == "open":
        return ConnectionUpdate(kind="open")
    if connection == "close":
        last_disconnect = _lookup(update, "lastDisconnect", "last_disconnect")
        error = _lookup(last_disconnect, "error") if last_disconnect is not None else None
        return ConnectionUpdate(
            kind="close",
            status_code=_disconnect_status(last_disconnect),
            detail=str(error) if error is not None else "",
        )
    return None


class PyaileysConnection:
    """Connection handle backed by ``pyaileys.client.WhatsAppClient``."""

    def __init__(self, client: Any, auth_state: Any) -> None:
        self._client = client
        self._auth_state = auth_state

    @classmethod
    async def open(cls, auth_folder: str) -> PyaileysConnection:
        # Imported here so the API and tests load without the protocol stack
        from pyaileys.client import WhatsAppClient

        client, auth_state = await WhatsAppClient.from_auth_folder(auth_folder)
        return cls(client, auth_state)

    async def start(self, emit: EmitUpdate) -> None:
        async def on_connection_update(update: Any) -> None:
            parsed = parse_connection_update(update)
            if parsed is not None:
                emit(parsed)

        async def on_creds_update(_creds: Any) -> None:
            await self._auth_state.save_creds()

        self._client.on("connection.update", on_connection_update)
        self._client.on("creds.update", on_creds_update)
        await self._client.connect()

    async def send(self, jid: str, message: OutboundMessage) -> None:
        if isinstance(message, TextMessage):
            await self._client.send_text(jid, message.text)
        elif isinstance(message, ImageMessage):
            await self._client.send_image(
                jid,
                message.data,
                mimetype=message.mimetype,
                caption=message.caption,
            )
        else:
            raise TypeError(f"unsupported message type: {type(message).__name__}")

    async def close(self) -> None:
        await self._client.disconnect()


def pyaileys_factory(auth_folder: str) -> ConnectionFactory:
    """Build a factory that opens a fresh pyaileys handle per attempt."""

    async def factory() -> Connection:
        logger.info(
            "opening whatsapp connection",
            extra={"extra_fields": {"auth_folder": auth_folder}},
        )
        return await PyaileysConnection.open(auth_folder)

    return factory
