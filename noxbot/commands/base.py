"""Base abstractions for the command layer.

Handlers never touch discord.py objects directly. They receive an
InvocationContext (a per-event reply handle) and typed parameters;
the Dispatcher receives InboundEvents. Adapters in
``noxbot.platform`` and ``noxbot.text_commands`` implement both for
slash-command interactions and prefix text messages.

Key classes:
    BotServices: Dependency container shared by all handlers.
    InvocationContext: Reply surface for one inbound event.
    InboundEvent: What the Dispatcher reads from an event.
    HandlerEntry: A named, registered handler coroutine.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

import structlog

from .models import Attachment, Embed, GuildRef, UserRef

if TYPE_CHECKING:
    import aiohttp

    from ..config import Config
    from ..spelling import AccentCorrector

logger = structlog.get_logger("noxbot.commands")

# Slash-command token grammar, restricted to lowercase
COMMAND_NAME_PATTERN = re.compile(r"^[a-z0-9_-]{1,32}$")

# Exported handler name reserved for free-text input
FALLBACK_NAME = "fallback"

HandlerFunc = Callable[..., Awaitable[None]]


@dataclass(frozen=True)
class HandlerEntry:
    """A discovered command handler.

    Attributes:
        name: Unique lowercase command name.
        execute: Coroutine function ``execute(context, *parameters)``.
        source: Module file the handler came from (for logging).
    """

    name: str
    execute: HandlerFunc
    source: str = ""


@dataclass
class BotServices:
    """Dependency container for handlers.

    Built once at startup and reachable from every InvocationContext
    as ``context.services``. The HTTP session is created in
    NoxBot.start(); accessing it earlier raises RuntimeError.
    """

    config: "Config"
    spelling: Optional["AccentCorrector"] = None
    _http: Optional["aiohttp.ClientSession"] = field(default=None, repr=False)

    @property
    def http(self) -> "aiohttp.ClientSession":
        if self._http is None:
            raise RuntimeError("Bot not started - HTTP session not available")
        return self._http


class InvocationContext(ABC):
    """Reply handle for one inbound event.

    Borrowed by the core for the duration of a single dispatch. The
    Discord rule applies to every adapter: ``reply`` is one-shot,
    ``defer_reply`` reserves the right to answer later via
    ``edit_reply``, and ``follow_up`` is only valid after either.

    ``private`` maps to an ephemeral response where the platform
    supports one and is ignored where it does not.
    """

    def __init__(
        self,
        services: BotServices,
        user: UserRef,
        guild: Optional[GuildRef] = None,
        created_at: Optional[datetime] = None,
    ):
        self.services = services
        self.user = user
        self.guild = guild
        self.created_at = created_at or datetime.now(timezone.utc)
        self.replied = False
        self.deferred = False

    @abstractmethod
    async def reply(
        self,
        content: Optional[str] = None,
        *,
        embed: Optional[Embed] = None,
        attachment: Optional[Attachment] = None,
        private: bool = False,
    ) -> None:
        """Send the initial response."""
        ...

    @abstractmethod
    async def defer_reply(self, *, private: bool = False) -> None:
        """Acknowledge now, answer later with edit_reply."""
        ...

    @abstractmethod
    async def edit_reply(
        self,
        content: Optional[str] = None,
        *,
        embed: Optional[Embed] = None,
        attachment: Optional[Attachment] = None,
    ) -> None:
        """Replace the initial (or deferred) response."""
        ...

    @abstractmethod
    async def follow_up(
        self,
        content: Optional[str] = None,
        *,
        embed: Optional[Embed] = None,
        private: bool = False,
    ) -> None:
        """Send an additional message after reply/defer."""
        ...

    @property
    def acknowledged(self) -> bool:
        """True once the event has been replied to or deferred."""
        return self.replied or self.deferred


class InboundEvent(ABC):
    """The fields the Dispatcher reads from an inbound event."""

    @property
    @abstractmethod
    def is_chat_input(self) -> bool:
        ...

    @property
    @abstractmethod
    def command_name(self) -> str:
        ...

    @property
    @abstractmethod
    def subcommand_name(self) -> Optional[str]:
        ...

    @abstractmethod
    def get_string(self, name: str) -> Optional[str]:
        """Value of a string option, or None when absent."""
        ...

    @abstractmethod
    def get_user(self, name: str) -> Optional[UserRef]:
        """Value of a user option, or None when absent."""
        ...

    @property
    @abstractmethod
    def context(self) -> InvocationContext:
        ...

    def describe(self) -> dict[str, Any]:
        """Log-friendly summary of the event."""
        return {
            "command": self.command_name,
            "subcommand": self.subcommand_name,
            "user_id": self.context.user.id,
        }
