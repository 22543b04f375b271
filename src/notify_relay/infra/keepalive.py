"""Periodic self-ping that keeps free-tier hosts from idling the process out."""

import asyncio

import httpx

from notify_relay.observability.correlation import correlation_scope
from notify_relay.observability.logging import get_logger

logger = get_logger(__name__)


async def ping_once(client: httpx.AsyncClient, url: str) -> bool:
    """GET ``url`` once. Failures are logged, never raised."""
    try:
        response = await client.get(url, timeout=10)
    except httpx.HTTPError as exc:
        logger.warning("keep-alive ping failed", extra={"extra_fields": {"error_type": type(exc).__name__}})
        return False
    if not response.is_success:
        logger.warning("keep-alive ping rejected", extra={"extra_fields": {"status": response.status_code}})
        return False
    return True


async def run_keepalive(url: str, interval: float) -> None:
    """Ping ``url`` every ``interval`` seconds until cancelled."""
    async with httpx.AsyncClient() as client:
        while True:
            await asyncio.sleep(interval)
            with correlation_scope(prefix="keepalive"):
                await ping_once(client, url)
