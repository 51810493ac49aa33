# krishipulse/http.py
import logging
from typing import Optional

import httpx

from .config import settings

log = logging.getLogger("krishipulse.http")

USER_AGENT = "KrishiPulse/1.0"

# One pooled client for Open-Meteo, Nominatim and image URL downloads.
client: Optional[httpx.AsyncClient] = None


def _build_client() -> httpx.AsyncClient:
    timeout = httpx.Timeout(
        settings.HTTP_READ_TIMEOUT_SEC,
        connect=settings.HTTP_CONNECT_TIMEOUT_SEC,
    )
    limits = httpx.Limits(
        max_connections=settings.HTTP_MAX_CONNECTIONS,
        max_keepalive_connections=settings.HTTP_MAX_CONNECTIONS // 2,
        keepalive_expiry=30,
    )
    return httpx.AsyncClient(
        timeout=timeout,
        limits=limits,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT, "Accept-Encoding": "gzip, deflate"},
    )


async def init_http():
    global client
    if client is not None:
        return
    client = _build_client()
    log.info("HTTP client ready (connect %.0fs, read %.0fs, max %d connections)",
             settings.HTTP_CONNECT_TIMEOUT_SEC, settings.HTTP_READ_TIMEOUT_SEC,
             settings.HTTP_MAX_CONNECTIONS)


async def close_http():
    global client
    if client is not None:
        await client.aclose()
        client = None
        log.info("HTTP client closed")


def get_http_client() -> httpx.AsyncClient:
    """The shared client; init_http() must have run (app startup does it)."""
    if client is None:
        raise RuntimeError("HTTP client not initialized; call init_http() first")
    return client
