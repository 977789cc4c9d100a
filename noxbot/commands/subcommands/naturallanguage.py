"""Catch-all for free text addressed to the bot.

There is no language understanding here; the reply just points the
user at the real commands.
"""

import random

from noxbot.commands.base import InvocationContext

RESPONSES = (
    'I understand you said: "{query}". I\'m still learning how to handle complex requests!',
    'That\'s an interesting request: "{query}". I\'m working on understanding natural language better.',
    'I received: "{query}". For now, try using specific commands like "/nox weather" or "/nox help"!',
)


async def fallback(ctx: InvocationContext, query: str) -> None:
    await ctx.reply(random.choice(RESPONSES).format(query=query))
