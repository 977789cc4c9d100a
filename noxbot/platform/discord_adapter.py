"""discord.py adapters for the command layer.

Wraps ``discord.Interaction`` as an InvocationContext and an
InboundEvent. Option values are read from the raw interaction payload
(``interaction.data``) because the bot does not use discord.py's
CommandTree; resolved users come from ``data["resolved"]``.
"""

import io
from datetime import datetime
from typing import Any, Dict, List, Optional

import discord
import structlog

from ..commands.base import BotServices, InboundEvent, InvocationContext
from ..commands.models import (
    COMMAND_TYPE_CHAT_INPUT,
    OPTION_TYPE_SUB_COMMAND,
    Attachment,
    Embed,
    GuildRef,
    UserRef,
)

logger = structlog.get_logger("noxbot.bot")

CDN_BASE = "https://cdn.discordapp.com"
# Sub-command group, which nests sub-commands one level deeper
OPTION_TYPE_SUB_COMMAND_GROUP = 2


def avatar_url(user_id: str, avatar_hash: Optional[str]) -> str:
    """CDN URL for a user's avatar, or their default avatar."""
    if avatar_hash:
        ext = "gif" if avatar_hash.startswith("a_") else "png"
        return f"{CDN_BASE}/avatars/{user_id}/{avatar_hash}.{ext}?size=256"
    return f"{CDN_BASE}/embed/avatars/{(int(user_id) >> 22) % 6}.png"


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def user_from_payload(
    data: Dict[str, Any], member: Optional[Dict[str, Any]] = None
) -> UserRef:
    """Build a UserRef from raw user (and optional member) JSON."""
    user_id = str(data["id"])
    roles: List[str] = []
    joined_at = None
    if member:
        joined_at = _parse_time(member.get("joined_at"))
        roles = [f"<@&{rid}>" for rid in member.get("roles", [])]
    return UserRef(
        id=user_id,
        username=data.get("username", ""),
        avatar_url=avatar_url(user_id, data.get("avatar")),
        created_at=discord.utils.snowflake_time(int(user_id)),
        joined_at=joined_at,
        roles=roles,
    )


def user_from_discord(user: "discord.abc.User") -> UserRef:
    """Build a UserRef from a discord.py User or Member."""
    joined_at = getattr(user, "joined_at", None)
    roles = [
        role.mention for role in getattr(user, "roles", []) if not role.is_default()
    ]
    return UserRef(
        id=str(user.id),
        username=user.name,
        avatar_url=str(user.display_avatar.url),
        created_at=user.created_at,
        joined_at=joined_at,
        roles=roles,
    )


def to_discord_embed(embed: Embed) -> discord.Embed:
    return discord.Embed.from_dict(embed.to_payload())


def to_discord_file(attachment: Attachment) -> discord.File:
    return discord.File(io.BytesIO(attachment.data), filename=attachment.filename)


def message_kwargs(
    content: Optional[str],
    embed: Optional[Embed],
    attachment: Optional[Attachment] = None,
) -> Dict[str, Any]:
    """Keyword arguments for discord.py send/edit calls, omitting unset parts."""
    kwargs: Dict[str, Any] = {}
    if content is not None:
        kwargs["content"] = content
    if embed is not None:
        kwargs["embed"] = to_discord_embed(embed)
    if attachment is not None:
        kwargs["file"] = to_discord_file(attachment)
    return kwargs


class InteractionContext(InvocationContext):
    """InvocationContext backed by a slash-command interaction."""

    def __init__(self, interaction: discord.Interaction, services: BotServices):
        guild = None
        if interaction.guild_id is not None:
            name = interaction.guild.name if interaction.guild else ""
            guild = GuildRef(id=str(interaction.guild_id), name=name)
        super().__init__(
            services=services,
            user=user_from_discord(interaction.user),
            guild=guild,
            created_at=interaction.created_at,
        )
        self._interaction = interaction

    async def reply(self, content=None, *, embed=None, attachment=None, private=False):
        await self._interaction.response.send_message(
            ephemeral=private, **message_kwargs(content, embed, attachment)
        )
        self.replied = True

    async def defer_reply(self, *, private=False):
        await self._interaction.response.defer(ephemeral=private, thinking=True)
        self.deferred = True

    async def edit_reply(self, content=None, *, embed=None, attachment=None):
        kwargs = message_kwargs(content, embed)
        if attachment is not None:
            kwargs["attachments"] = [to_discord_file(attachment)]
        await self._interaction.edit_original_response(**kwargs)
        self.replied = True

    async def follow_up(self, content=None, *, embed=None, private=False):
        await self._interaction.followup.send(
            ephemeral=private, **message_kwargs(content, embed)
        )

    @property
    def acknowledged(self) -> bool:
        return super().acknowledged or self._interaction.response.is_done()


class InteractionEvent(InboundEvent):
    """InboundEvent view of a discord.py interaction."""

    def __init__(self, interaction: discord.Interaction, services: BotServices):
        self._interaction = interaction
        self._data: Dict[str, Any] = interaction.data or {}
        self._services = services
        self._context: Optional[InteractionContext] = None
        self._subcommand, self._options = self._flatten(self._data.get("options", []))

    @staticmethod
    def _flatten(options: List[Dict[str, Any]]):
        """Walk down sub-command (group) levels to the leaf options."""
        subcommand = None
        while len(options) == 1 and options[0].get("type") in (
            OPTION_TYPE_SUB_COMMAND,
            OPTION_TYPE_SUB_COMMAND_GROUP,
        ):
            subcommand = options[0]["name"]
            options = options[0].get("options", [])
        return subcommand, {opt["name"]: opt.get("value") for opt in options}

    @property
    def is_chat_input(self) -> bool:
        return (
            self._interaction.type == discord.InteractionType.application_command
            and self._data.get("type", COMMAND_TYPE_CHAT_INPUT) == COMMAND_TYPE_CHAT_INPUT
        )

    @property
    def command_name(self) -> str:
        return self._data.get("name", "")

    @property
    def subcommand_name(self) -> Optional[str]:
        return self._subcommand

    def get_string(self, name: str) -> Optional[str]:
        value = self._options.get(name)
        return str(value) if value is not None else None

    def get_user(self, name: str) -> Optional[UserRef]:
        user_id = self._options.get(name)
        if user_id is None:
            return None
        resolved = self._data.get("resolved", {})
        user_data = resolved.get("users", {}).get(str(user_id))
        if user_data is None:
            logger.warning("user_option_unresolved", option=name)
            return None
        member_data = resolved.get("members", {}).get(str(user_id))
        return user_from_payload(user_data, member_data)

    @property
    def context(self) -> InteractionContext:
        if self._context is None:
            self._context = InteractionContext(self._interaction, self._services)
        return self._context
