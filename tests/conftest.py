"""Shared fixtures: in-memory InvocationContext and InboundEvent doubles."""

from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from noxbot.commands.base import BotServices, InboundEvent, InvocationContext
from noxbot.commands.models import GuildRef, UserRef

SUBCOMMANDS_DIR = Path(__file__).parent.parent / "noxbot" / "commands" / "subcommands"


class FakeContext(InvocationContext):
    """Records every outbound call instead of talking to Discord."""

    def __init__(self, services=None, user=None, guild=None):
        super().__init__(
            services=services or make_services(),
            user=user or UserRef(id="111111111111111111", username="alice"),
            guild=guild,
        )
        self.calls: List[tuple] = []

    async def reply(self, content=None, *, embed=None, attachment=None, private=False):
        self.calls.append(("reply", content, embed, attachment, private))
        self.replied = True

    async def defer_reply(self, *, private=False):
        self.calls.append(("defer", private))
        self.deferred = True

    async def edit_reply(self, content=None, *, embed=None, attachment=None):
        self.calls.append(("edit", content, embed, attachment))

    async def follow_up(self, content=None, *, embed=None, private=False):
        self.calls.append(("follow_up", content, embed, private))

    def of_kind(self, kind: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == kind]


class FakeEvent(InboundEvent):
    def __init__(
        self,
        command: str = "nox",
        subcommand: Optional[str] = None,
        strings: Optional[Dict[str, str]] = None,
        users: Optional[Dict[str, UserRef]] = None,
        chat_input: bool = True,
        context: Optional[FakeContext] = None,
    ):
        self._command = command
        self._subcommand = subcommand
        self._strings = strings or {}
        self._users = users or {}
        self._chat_input = chat_input
        self._context = context or FakeContext()

    @property
    def is_chat_input(self) -> bool:
        return self._chat_input

    @property
    def command_name(self) -> str:
        return self._command

    @property
    def subcommand_name(self) -> Optional[str]:
        return self._subcommand

    def get_string(self, name: str) -> Optional[str]:
        return self._strings.get(name)

    def get_user(self, name: str) -> Optional[UserRef]:
        return self._users.get(name)

    @property
    def context(self) -> FakeContext:
        return self._context


def make_config(**overrides: Any) -> MagicMock:
    """A Config stand-in with handler defaults."""
    config = MagicMock()
    config.openweather_api_key = "test-key"
    config.weather_default_location = "London"
    config.weather_timeout = 10
    config.definition_timeout = 8
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def make_services(config=None, spelling=None, http=None) -> BotServices:
    return BotServices(
        config=config or make_config(),
        spelling=spelling,
        _http=http if http is not None else MagicMock(),
    )


@pytest.fixture
def ctx():
    return FakeContext()


@pytest.fixture
def guild_ctx():
    return FakeContext(guild=GuildRef(id="222222222222222222", name="Test Guild"))
