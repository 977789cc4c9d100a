"""/nox guildid"""

from noxbot.commands.base import InvocationContext


async def guildid(ctx: InvocationContext) -> None:
    if ctx.guild is None:
        await ctx.reply("This command can only be used in a server!", private=True)
        return

    await ctx.reply(
        f"🏠 **Guild ID:** `{ctx.guild.id}`\n\n"
        "Add this to your `.env` as `GUILD_ID` for instant command updates!",
        private=True,
    )
