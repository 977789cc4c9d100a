"""Upstream HTTP helpers for handlers.

Each helper performs one GET with a hard timeout and turns every
failure into an UpstreamError whose ``kind`` tells the handler which
message to show the user.
"""

import asyncio
from typing import Any, Dict, Optional

import aiohttp
import structlog

from ..exceptions import UpstreamError

logger = structlog.get_logger("noxbot.handlers")

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


async def _get(
    session: aiohttp.ClientSession,
    url: str,
    *,
    read: str,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 10,
):
    try:
        async with session.get(
            url,
            params=params,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as resp:
            if resp.status >= 400:
                logger.warning("upstream_http_error", url=url, status=resp.status)
                raise UpstreamError.from_status(resp.status, url=url)
            if read == "json":
                return await resp.json(content_type=None)
            if read == "bytes":
                return await resp.read()
            return await resp.text()
    except asyncio.TimeoutError as e:
        logger.warning("upstream_timeout", url=url, timeout=timeout)
        raise UpstreamError("Upstream timed out", kind="timeout", url=url) from e
    except aiohttp.ClientError as e:
        logger.warning("upstream_client_error", url=url, error=str(e))
        raise UpstreamError(f"Upstream request failed: {e}", url=url) from e


async def fetch_json(session, url, *, params=None, headers=None, timeout: float = 10) -> Any:
    """GET and decode a JSON body."""
    return await _get(session, url, read="json", params=params, headers=headers, timeout=timeout)


async def fetch_text(session, url, *, params=None, headers=None, timeout: float = 10) -> str:
    """GET and decode a text body."""
    return await _get(session, url, read="text", params=params, headers=headers, timeout=timeout)


async def fetch_bytes(session, url, *, params=None, headers=None, timeout: float = 10) -> bytes:
    """GET a binary body (images)."""
    return await _get(session, url, read="bytes", params=params, headers=headers, timeout=timeout)
