"""Discord bot implementation for noxbot.

Owns the startup sequence (discover handlers -> build descriptors ->
register them -> log in) and the runtime path (gateway event ->
Dispatcher -> handler -> reply).

Key classes:
    NoxBot: Main bot class. Owns the HTTP session, handler registry,
        registrar, dispatcher and the discord.py client.

Key functions:
    build_intents: Turn configured intent names into discord.Intents.
    build_descriptors: Descriptor set for the configured command layout.
"""

import asyncio
from typing import List, Optional

import aiohttp
import discord
import structlog

from .commands.base import BotServices
from .commands.descriptors import build, build_umbrella
from .commands.models import CommandDescriptor
from .commands.registry import HandlerRegistry
from .config import Config, get_config
from .dispatcher import CommandDispatcher
from .platform.discord_adapter import InteractionEvent
from .platform.rest import DiscordRestClient
from .registrar import CommandRegistrar, scope_from_ids
from .spelling import AccentCorrector
from .text_commands import TextCommandRouter

logger = structlog.get_logger("noxbot.bot")


def build_intents(names: List[str]) -> discord.Intents:
    """Build gateway intents from discord.Intents flag names."""
    intents = discord.Intents.none()
    for name in names:
        if name in discord.Intents.VALID_FLAGS:
            setattr(intents, name, True)
        else:
            logger.warning("unknown_intent", intent=name)
    return intents


def build_descriptors(config: Config, registry: HandlerRegistry) -> List[CommandDescriptor]:
    """Descriptors for the configured layout (umbrella or flat)."""
    entries = registry.entries()
    if config.command_layout == "flat":
        return build(entries)
    return [build_umbrella(entries, name=config.umbrella_command)]


def log_task_exception(task: asyncio.Task):
    """Log exceptions from fire-and-forget tasks instead of silently swallowing them."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc:
        logger.error("background_task_failed", error=str(exc), exc_type=type(exc).__name__)


class NoxBot:
    """Discord bot with a file-discovered handler registry.

    Construction is synchronous and side-effect free apart from
    handler discovery; start() performs registration and login.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()
        self.session: Optional[aiohttp.ClientSession] = None
        self.running = False
        self._tasks: set = set()

        self.services = BotServices(
            config=self.config,
            spelling=AccentCorrector(self.config.dictionary_path),
        )

        self.registry = HandlerRegistry(self.config.handlers_dir)
        self.registry.discover()

        self.dispatcher = CommandDispatcher(
            self.registry, umbrella_name=self.config.umbrella_command
        )
        self.text_router: Optional[TextCommandRouter] = None
        if self.config.text_commands_enabled:
            self.text_router = TextCommandRouter(self.dispatcher, self.config.command_prefix)

        self.registrar: Optional[CommandRegistrar] = None

        self.client = discord.Client(intents=build_intents(self.config.intents))
        self._install_events()

    def _install_events(self):
        client = self.client

        @client.event
        async def on_ready():
            logger.info("bot_online", user=str(client.user), guilds=len(client.guilds))

        @client.event
        async def on_interaction(interaction: discord.Interaction):
            await self.handle_interaction(interaction)

        @client.event
        async def on_message(message: discord.Message):
            await self.handle_message(message)

    def _make_registrar(self) -> CommandRegistrar:
        rest = DiscordRestClient(
            session=self.session,
            token=self.config.discord_token,
            application_id=self.config.client_id,
        )
        return CommandRegistrar(rest, scope_from_ids(self.config.development_guild_ids))

    async def open_session(self):
        """Create the shared HTTP session used by handlers and the registrar."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
            self.services._http = self.session
        self.registrar = self._make_registrar()

    async def register_commands(self):
        """Push the current descriptor set. Raises RegistrationError on failure."""
        await self.registrar.register(build_descriptors(self.config, self.registry))

    async def start(self):
        """Register commands and log in.

        Any failure here is startup-fatal and propagates to the caller.
        """
        await self.open_session()
        self.running = True
        await self.register_commands()
        await self.client.login(self.config.discord_token)
        logger.info(
            "bot_started",
            commands=sorted(self.registry.names),
            layout=self.config.command_layout,
            text_commands=self.text_router is not None,
        )

    async def stop(self):
        """Close the gateway connection and the HTTP session."""
        if not self.running:
            return
        self.running = False
        for task in list(self._tasks):
            task.cancel()
        if not self.client.is_closed():
            await self.client.close()
        if self.session and not self.session.closed:
            await self.session.close()
        logger.info("bot_stopped")

    async def run(self):
        """Main run loop: start, hold the gateway connection, stop on exit."""
        await self.start()
        try:
            await self.client.connect(reconnect=True)
        finally:
            await self.stop()

    def _spawn(self, coro):
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(log_task_exception)
        return task

    async def handle_interaction(self, interaction: discord.Interaction):
        """Dispatch a gateway interaction without blocking the event loop."""
        event = InteractionEvent(interaction, self.services)
        if not event.is_chat_input:
            return
        logger.info(
            "interaction_received",
            command=event.command_name,
            subcommand=event.subcommand_name,
        )
        self._spawn(self.dispatcher.dispatch(event))

    async def handle_message(self, message: discord.Message):
        """Route a legacy prefix command, if text commands are enabled."""
        if self.text_router is None:
            return
        try:
            await self.text_router.handle_message(message, self.services)
        except Exception as e:
            logger.error("message_handling_error", error=str(e), error_type=type(e).__name__)

    def reload_handlers(self):
        """Re-scan the handler directory (live update without restart)."""
        self.registry.reload()
        logger.info("handlers_reloaded", commands=sorted(self.registry.names))
