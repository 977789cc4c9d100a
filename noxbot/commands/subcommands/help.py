"""/nox help"""

from noxbot.commands.base import InvocationContext
from noxbot.commands.models import Embed


def build_help_embed() -> Embed:
    embed = Embed(
        title="🤖 Nox AI Assistant - Help",
        description="I can help you with various tasks! Here are some examples:",
        footer="Nox AI Assistant",
    )
    embed.add_field(
        "Weather Information",
        "`/nox weather` - Current weather\n`/nox weather Lisbon` - Weather for a city",
    )
    embed.add_field(
        "Dictionary",
        "`/nox definition flotilha` - Portuguese definition from Priberam",
    )
    embed.add_field("User Information", "`/nox userinfo @username` - Get user info")
    embed.add_field("Server Information", "`/nox guildid` - Get server/guild ID")
    embed.add_field(
        "Quick Commands",
        "`/nox ping` - Test response time\n`/nox help` - Show this help",
    )
    embed.add_field(
        "Natural Language",
        "You can also ask me things in natural language!",
    )
    return embed


async def help(ctx: InvocationContext) -> None:
    await ctx.reply(embed=build_help_embed())
