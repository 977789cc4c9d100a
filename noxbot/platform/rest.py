"""Minimal Discord REST client for command management.

Only the two bulk-replace endpoints the Registrar needs. Each PUT
overwrites the whole command set of its scope, so repeating a call is
harmless.
"""

import asyncio
from typing import Any, Dict, List

import aiohttp
import structlog

from ..exceptions import RegistrationError

logger = structlog.get_logger("noxbot.registrar")

API_BASE = "https://discord.com/api/v10"


class DiscordRestClient:
    """Pushes application command sets to Discord.

    Args:
        session: Shared aiohttp session (owned by the caller).
        token: Bot token, sent as ``Authorization: Bot <token>``.
        application_id: Application that owns the commands.
        api_base: Override for tests or proxies.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        token: str,
        application_id: str,
        api_base: str = API_BASE,
        timeout: float = 30,
    ):
        self._session = session
        self._token = token
        self.application_id = application_id
        self.api_base = api_base.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bot {self._token}",
            "Content-Type": "application/json",
        }

    async def _put(self, path: str, body: List[Dict[str, Any]], scope: str) -> List[dict]:
        url = f"{self.api_base}{path}"
        try:
            async with self._session.put(
                url, json=body, headers=self._headers(), timeout=self._timeout
            ) as resp:
                if resp.status >= 300:
                    text = await resp.text()
                    logger.error(
                        "command_put_rejected",
                        scope=scope,
                        status=resp.status,
                        body=text[:500],
                    )
                    raise RegistrationError(
                        f"Discord rejected command set for {scope}",
                        status=resp.status,
                        scope=scope,
                        body=text[:200],
                    )
                return await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("command_put_error", scope=scope, error=str(e))
            raise RegistrationError(
                f"Could not reach Discord for {scope}: {e}", scope=scope
            ) from e

    async def put_global_commands(self, commands: List[Dict[str, Any]]) -> List[dict]:
        """Replace the global command set (propagation may take up to an hour)."""
        return await self._put(
            f"/applications/{self.application_id}/commands", commands, "global"
        )

    async def put_guild_commands(
        self, guild_id: str, commands: List[Dict[str, Any]]
    ) -> List[dict]:
        """Replace one guild's command set (near-instant)."""
        return await self._put(
            f"/applications/{self.application_id}/guilds/{guild_id}/commands",
            commands,
            f"guild:{guild_id}",
        )

