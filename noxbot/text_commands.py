"""Legacy prefix-triggered text commands.

Messages such as ``!nox weather Lisbon`` are turned into the same
InboundEvent the slash-command path produces, so the Dispatcher, the
parameter table and the handlers are shared. Free text after the
prefix that does not start with a known command goes to the fallback
handler.
"""

from typing import Dict, List, Optional

import discord
import structlog

from .commands.base import BotServices, InboundEvent, InvocationContext
from .commands.descriptors import parameters_for
from .commands.models import GuildRef, ParameterKind, UserRef
from .dispatcher import CommandDispatcher
from .platform.discord_adapter import message_kwargs, to_discord_file, user_from_discord

logger = structlog.get_logger("noxbot.commands")

DEFAULT_COMMAND = "help"


class MessageContext(InvocationContext):
    """InvocationContext backed by a channel message.

    Text channels have no ephemeral replies, so ``private`` is ignored.
    ``defer_reply`` shows the typing indicator; ``edit_reply`` edits
    the bot's first reply, or sends one if there is none yet.
    """

    def __init__(self, message: discord.Message, services: BotServices):
        guild = None
        if message.guild is not None:
            guild = GuildRef(id=str(message.guild.id), name=message.guild.name)
        super().__init__(
            services=services,
            user=user_from_discord(message.author),
            guild=guild,
            created_at=message.created_at,
        )
        self._message = message
        self._sent: Optional[discord.Message] = None

    async def reply(self, content=None, *, embed=None, attachment=None, private=False):
        self._sent = await self._message.reply(
            mention_author=False, **message_kwargs(content, embed, attachment)
        )
        self.replied = True

    async def defer_reply(self, *, private=False):
        await self._message.channel.typing()
        self.deferred = True

    async def edit_reply(self, content=None, *, embed=None, attachment=None):
        if self._sent is None:
            await self.reply(content, embed=embed, attachment=attachment)
            return
        kwargs = message_kwargs(content, embed)
        if attachment is not None:
            kwargs["attachments"] = [to_discord_file(attachment)]
        self._sent = await self._sent.edit(**kwargs)

    async def follow_up(self, content=None, *, embed=None, private=False):
        await self._message.channel.send(**message_kwargs(content, embed))


class TextCommandEvent(InboundEvent):
    """InboundEvent parsed from ``<prefix> <command> [argument text]``."""

    def __init__(
        self,
        command_name: str,
        subcommand_name: str,
        options: Dict[str, str],
        users: Dict[str, UserRef],
        context: InvocationContext,
    ):
        self._command_name = command_name
        self._subcommand_name = subcommand_name
        self._options = options
        self._users = users
        self._context = context

    @property
    def is_chat_input(self) -> bool:
        return True

    @property
    def command_name(self) -> str:
        return self._command_name

    @property
    def subcommand_name(self) -> Optional[str]:
        return self._subcommand_name

    def get_string(self, name: str) -> Optional[str]:
        return self._options.get(name)

    def get_user(self, name: str) -> Optional[UserRef]:
        return self._users.get(name)

    @property
    def context(self) -> InvocationContext:
        return self._context


def split_command(content: str, prefix: str) -> Optional[List[str]]:
    """Split a prefixed message into ``[command, rest]``.

    Returns None when the message does not start with the prefix
    (case-insensitive, followed by whitespace or end of message).
    """
    stripped = content.strip()
    if not stripped.lower().startswith(prefix.lower()):
        return None
    remainder = stripped[len(prefix):]
    if remainder and not remainder[0].isspace():
        return None
    parts = remainder.strip().split(maxsplit=1)
    if not parts:
        return ["", ""]
    return [parts[0].lower(), parts[1] if len(parts) > 1 else ""]


def build_options(
    command: str, argument: str, mentions: List[UserRef]
) -> tuple:
    """Fill a command's parameters from its argument text.

    The first string parameter takes the whole argument; the first
    user parameter takes the first mentioned user.
    """
    options: Dict[str, str] = {}
    users: Dict[str, UserRef] = {}
    for spec in parameters_for(command):
        if spec.kind == ParameterKind.STRING and argument and spec.name not in options:
            options[spec.name] = argument
        elif spec.kind == ParameterKind.USER and mentions:
            users[spec.name] = mentions[0]
    return options, users


class TextCommandRouter:
    """Routes prefix messages through the Dispatcher.

    Args:
        dispatcher: Shared CommandDispatcher.
        prefix: Trigger, e.g. ``!nox``.
    """

    def __init__(self, dispatcher: CommandDispatcher, prefix: str):
        self.dispatcher = dispatcher
        self.prefix = prefix

    async def route(
        self,
        content: str,
        context: InvocationContext,
        mentions: Optional[List[UserRef]] = None,
    ) -> bool:
        """Dispatch one message. Returns False if it is not a command."""
        parts = split_command(content, self.prefix)
        if parts is None:
            return False
        command, argument = parts
        registry = self.dispatcher.registry
        umbrella = self.dispatcher.umbrella_name

        if not command:
            command = DEFAULT_COMMAND

        if command in registry:
            options, users = build_options(command, argument.strip(), mentions or [])
            logger.debug("text_command_routed", command=command)
            await self.dispatcher.dispatch(
                TextCommandEvent(umbrella, command, options, users, context)
            )
            return True

        query = content.strip()[len(self.prefix):].strip()
        logger.debug("text_command_fallback", length=len(query))
        handled = await self.dispatcher.dispatch_fallback(context, query)
        if not handled:
            await context.reply(
                f"Unknown command: {command}\nUse {self.prefix} help to see available commands."
            )
        return True

    async def handle_message(self, message: discord.Message, services: BotServices) -> bool:
        """Entry point for discord.py ``on_message``."""
        if message.author.bot:
            return False
        if split_command(message.content, self.prefix) is None:
            return False
        context = MessageContext(message, services)
        mentions = [user_from_discord(u) for u in message.mentions]
        return await self.route(message.content, context, mentions)

