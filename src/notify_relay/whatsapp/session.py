"""Lifecycle manager for the single WhatsApp session.

A supervisor task owns the connection. Each attempt gets a brand-new handle
from the connection factory; its lifecycle events are pushed onto a queue
tagged with the attempt's generation, and the supervisor applies them to the
state machine:

    CONNECTING -> AWAITING_PAIRING -> CONNECTED
         ^               |                |
         +---------------+----------------+   (close, not logged out)

    any state -> CLOSED                       (close, logged out; terminal)

Request handlers only read the cached state and call ``send``; the handle and
the pairing challenge are replaced wholesale, never mutated.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable

from notify_relay.errors import DeliveryFailed, SessionNotReady
from notify_relay.observability.correlation import correlation_scope
from notify_relay.observability.logging import get_logger
from notify_relay.observability.redaction import hash_identifier, safe_log_context

from .models import ConnectionUpdate, OutboundMessage, PairingState, SessionState
from .transport import Connection, ConnectionFactory, EmitUpdate

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReconnectPolicy:
    """When and how fast a dropped session is re-established."""

    delay: float = 1.0

    def should_reconnect(self, update: ConnectionUpdate) -> bool:
        return update.kind == "close" and not update.logged_out


@dataclass(frozen=True)
class _Handle:
    generation: int
    connection: Connection


class SessionManager:
    """Owns the connection, its pairing challenge and the reconnect loop."""

    def __init__(
        self,
        factory: ConnectionFactory,
        policy: ReconnectPolicy | None = None,
        on_challenge: Callable[[str], None] | None = None,
    ) -> None:
        self._factory = factory
        self._policy = policy or ReconnectPolicy()
        self._on_challenge = on_challenge
        self._state = SessionState.CONNECTING
        self._challenge: str | None = None
        self._handle: _Handle | None = None
        self._generation = 0
        self._events: asyncio.Queue[tuple[int, ConnectionUpdate]] = asyncio.Queue()
        self._task: asyncio.Task | None = None
        self._starter: asyncio.Task | None = None
        self.reconnect_count = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def challenge(self) -> str | None:
        return self._challenge

    def current_pairing_state(self) -> PairingState:
        """Snapshot for the status page. Never blocks."""
        state = self._state
        if state is SessionState.CONNECTED:
            return PairingState(status="connected", session_state=state)
        challenge = self._challenge
        if state is SessionState.AWAITING_PAIRING and challenge:
            return PairingState(status="awaiting_pairing", session_state=state, challenge=challenge)
        return PairingState(status="initializing", session_state=state)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def apply(self, update: ConnectionUpdate) -> bool:
        """Apply one lifecycle event. Returns True when a reconnect is due."""
        if self._state is SessionState.CLOSED:
            return False

        if update.kind == "qr":
            self._challenge = update.qr
            self._state = SessionState.AWAITING_PAIRING
            logger.info("pairing challenge received")
            if self._on_challenge is not None and update.qr:
                self._on_challenge(update.qr)
            return False

        if update.kind == "open":
            # Challenge cleared before the state flips so CONNECTED never carries one
            self._challenge = None
            self._state = SessionState.CONNECTED
            logger.info("opened connection to whatsapp")
            return False

        self._challenge = None
        reconnect = self._policy.should_reconnect(update)
        logger.warning(
            "connection closed",
            extra={
                "extra_fields": safe_log_context(
                    status_code=update.status_code,
                    detail=update.detail,
                    reconnecting=reconnect,
                )
            },
        )
        if reconnect:
            self._state = SessionState.CONNECTING
        else:
            self._state = SessionState.CLOSED
            logger.error("session logged out; re-pairing required")
        return reconnect

    # ------------------------------------------------------------------
    # Supervisor
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Spawn the supervisor task (idempotent)."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._supervise(), name="whatsapp-session")

    async def stop(self) -> None:
        """Cancel the supervisor and close the current handle."""
        for task in (self._task, self._starter):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._task = self._starter = None
        handle, self._handle = self._handle, None
        if handle is not None:
            await self._close_quietly(handle)

    async def _supervise(self) -> None:
        # Lines from this task and the starter tasks it spawns share one ID
        with correlation_scope(prefix="session"):
            await self._supervise_loop()

    async def _supervise_loop(self) -> None:
        await self._connect()
        while self._state is not SessionState.CLOSED:
            generation, update = await self._events.get()
            if generation != self._generation:
                # Event from a handle that has already been replaced
                continue
            try:
                reconnect = self.apply(update)
            except Exception as exc:
                logger.exception(
                    "session update handling failed",
                    extra={"extra_fields": {"error_type": type(exc).__name__, "kind": update.kind}},
                )
                # Handled like a close that is not a logout
                self._challenge = None
                self._state = SessionState.CONNECTING
                reconnect = True
            if reconnect:
                await asyncio.sleep(self._policy.delay)
                await self._connect()
        handle, self._handle = self._handle, None
        if handle is not None:
            await self._close_quietly(handle)
        await self._cancel_starter()

    async def _connect(self) -> None:
        """Replace the handle with a freshly constructed one and start it."""
        self._generation += 1
        generation = self._generation
        if generation > 1:
            self.reconnect_count += 1
        previous, self._handle = self._handle, None
        if previous is not None:
            await self._close_quietly(previous)
        await self._cancel_starter()

        def emit(update: ConnectionUpdate) -> None:
            self._events.put_nowait((generation, update))

        try:
            connection = await self._factory()
        except Exception as exc:
            self._report_attempt_failure(exc, emit)
            return
        self._handle = _Handle(generation=generation, connection=connection)
        # The library may keep start() suspended for the socket's lifetime
        self._starter = asyncio.create_task(self._run_handle(connection, emit))

    async def _run_handle(self, connection: Connection, emit: EmitUpdate) -> None:
        try:
            await connection.start(emit)
        except Exception as exc:
            self._report_attempt_failure(exc, emit)

    async def _cancel_starter(self) -> None:
        starter, self._starter = self._starter, None
        if starter is not None and not starter.done():
            starter.cancel()
            await asyncio.wait([starter])

    def _report_attempt_failure(self, exc: Exception, emit: EmitUpdate) -> None:
        logger.exception(
            "connection attempt failed",
            extra={"extra_fields": {"error_type": type(exc).__name__}},
        )
        emit(ConnectionUpdate(kind="close", detail=f"{type(exc).__name__}: {exc}"))

    async def _close_quietly(self, handle: _Handle) -> None:
        try:
            await handle.connection.close()
        except Exception as exc:
            logger.warning(
                "closing stale connection failed",
                extra={"extra_fields": {"error_type": type(exc).__name__}},
            )

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send(self, jid: str, message: OutboundMessage) -> None:
        """Send once through the live connection.

        Raises:
            SessionNotReady: If the session is not CONNECTED.
            DeliveryFailed: If the connection rejects or errors on the send.
        """
        handle = self._handle
        if self._state is not SessionState.CONNECTED or handle is None:
            raise SessionNotReady(f"session is {self._state.value}")

        log_ctx = {"to_hash": hash_identifier(jid), "kind": type(message).__name__}
        try:
            await handle.connection.send(jid, message)
        except Exception as exc:
            logger.error(
                "outbound send failed",
                extra={"extra_fields": {**log_ctx, "error_type": type(exc).__name__}},
            )
            raise DeliveryFailed(str(exc) or type(exc).__name__) from exc
        logger.info("outbound message sent", extra={"extra_fields": log_ctx})
