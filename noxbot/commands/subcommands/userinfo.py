"""/nox userinfo [user]"""

from datetime import datetime, timezone
from typing import Optional

from noxbot.commands.base import InvocationContext
from noxbot.commands.models import Embed, UserRef


def discord_timestamp(value: datetime) -> str:
    """Render a datetime with Discord's ``<t:unix:F>`` markup."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return f"<t:{int(value.timestamp())}:F>"


def build_userinfo_embed(user: UserRef, in_guild: bool) -> Embed:
    embed = Embed(
        title=f"{user.username}'s Information",
        thumbnail_url=user.avatar_url or None,
        footer="Nox AI Assistant",
        timestamp=datetime.now(timezone.utc),
    )
    embed.add_field("👤 Username", user.username, inline=True)
    embed.add_field("🆔 User ID", user.id, inline=True)
    if user.created_at:
        embed.add_field("📅 Account Created", discord_timestamp(user.created_at))

    if in_guild and user.joined_at:
        embed.add_field("📥 Joined Server", discord_timestamp(user.joined_at))
        embed.add_field("🎭 Roles", ", ".join(user.roles) if user.roles else "No roles")
    return embed


async def userinfo(ctx: InvocationContext, user: Optional[UserRef] = None) -> None:
    target = user or ctx.user
    await ctx.reply(embed=build_userinfo_embed(target, in_guild=ctx.guild is not None))
