"""Process-wide relay context: one session, one pipeline, one dispatcher."""

from __future__ import annotations

from dataclasses import dataclass

from notify_relay.dispatch import Dispatcher
from notify_relay.infra.settings import Settings
from notify_relay.media.pipeline import MediaPipeline
from notify_relay.media.poster import PosterRenderer
from notify_relay.media.render import PageRenderer
from notify_relay.whatsapp.qr import print_challenge
from notify_relay.whatsapp.session import ReconnectPolicy, SessionManager
from notify_relay.whatsapp.transport import pyaileys_factory


@dataclass
class RelayContext:
    settings: Settings
    session: SessionManager
    dispatcher: Dispatcher


def build_context(settings: Settings | None = None) -> RelayContext:
    """Wire the production collaborators from settings."""
    settings = settings or Settings.from_env()

    session = SessionManager(
        pyaileys_factory(settings.auth_folder),
        policy=ReconnectPolicy(delay=settings.reconnect_delay),
        on_challenge=print_challenge if settings.print_qr else None,
    )
    pipeline = MediaPipeline(
        renderer=PageRenderer(
            viewport=settings.render_viewport,
            timeout=settings.render_timeout,
            settle_delay=settings.render_settle_delay,
        ),
        poster=PosterRenderer(
            background_path=settings.poster_background_path,
            font_path=settings.poster_font_path,
        ),
        probe_timeout=settings.probe_timeout,
        fetch_timeout=settings.fetch_timeout,
    )
    return RelayContext(
        settings=settings,
        session=session,
        dispatcher=Dispatcher(session, pipeline),
    )
