"""Push command descriptors to Discord.

Guild-scoped registration shows up almost instantly, while global
registration can take up to an hour to propagate. When development
guilds are configured they replace global registration entirely.

Key classes:
    RegistrationScope: Which scopes a registration targets.
    CommandRegistrar: register() / unregister_all() over a REST client.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Protocol, Sequence, Tuple

import structlog

from .commands.models import CommandDescriptor

logger = structlog.get_logger("noxbot.registrar")


class CommandPusher(Protocol):
    """The two bulk-replace operations of Discord's command API."""

    async def put_global_commands(self, commands: List[Dict[str, Any]]) -> Any:
        ...

    async def put_guild_commands(
        self, guild_id: str, commands: List[Dict[str, Any]]
    ) -> Any:
        ...


@dataclass(frozen=True)
class RegistrationScope:
    """Where command sets are pushed.

    Attributes:
        development_guild_ids: Guilds for instant registration.
        use_global: Whether the global scope is used. Always False
            when any development guild is configured.
    """

    development_guild_ids: Tuple[str, ...] = ()

    @property
    def use_global(self) -> bool:
        return not self.development_guild_ids


class CommandRegistrar:
    """Registers and clears application commands.

    Failures are not retried here; RegistrationError propagates to
    the caller, which decides whether to retry the whole startup.

    Args:
        client: Anything implementing CommandPusher (DiscordRestClient).
        scope: Target scope, normally built from Config.
    """

    def __init__(self, client: CommandPusher, scope: RegistrationScope):
        self._client = client
        self.scope = scope

    async def register(self, descriptors: Sequence[CommandDescriptor]) -> None:
        """Replace the command set in the configured scope(s)."""
        body = [d.to_payload() for d in descriptors]
        logger.info(
            "command_registration_started",
            commands=[d.name for d in descriptors],
            guilds=len(self.scope.development_guild_ids),
        )

        if not self.scope.use_global:
            for guild_id in self.scope.development_guild_ids:
                await self._client.put_guild_commands(guild_id, body)
                logger.info("commands_registered", scope="guild", guild_id=guild_id)
            logger.info("global_registration_skipped", reason="development_guilds")
            return

        await self._client.put_global_commands(body)
        logger.info(
            "commands_registered",
            scope="global",
            note="propagation can take up to an hour",
        )

    async def unregister_all(self) -> None:
        """Clear the global set and every development guild's set.

        Pushing an empty set is idempotent: repeated calls succeed and
        leave the same (empty) state.
        """
        logger.info("command_unregister_started")
        await self._client.put_global_commands([])
        for guild_id in self.scope.development_guild_ids:
            await self._client.put_guild_commands(guild_id, [])
            logger.info("guild_commands_cleared", guild_id=guild_id)
        logger.info("commands_unregistered")


def scope_from_ids(guild_ids: Iterable[str]) -> RegistrationScope:
    """Build a scope, dropping blanks and duplicates while keeping order."""
    cleaned = [g.strip() for g in guild_ids if g and g.strip()]
    return RegistrationScope(development_guild_ids=tuple(dict.fromkeys(cleaned)))
