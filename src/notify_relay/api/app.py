"""ASGI entry point (``uvicorn notify_relay.api.app:app``)."""

from .factory import create_app

app = create_app()
