"""/nox ping"""

from datetime import datetime, timezone

from noxbot.commands.base import InvocationContext


async def ping(ctx: InvocationContext) -> None:
    await ctx.reply("Pinging...")
    latency = datetime.now(timezone.utc) - ctx.created_at
    await ctx.edit_reply(f"🏓 Pong! Latency: {int(latency.total_seconds() * 1000)}ms")
