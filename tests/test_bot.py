"""Tests for bot wiring: intents, descriptor layout, interaction entry."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from noxbot.bot import NoxBot, build_descriptors, build_intents
from noxbot.commands.registry import HandlerRegistry

from conftest import SUBCOMMANDS_DIR


def _bot_config(tmp_path, **overrides):
    config = MagicMock()
    config.discord_token = "token"
    config.client_id = "999"
    config.development_guild_ids = ("111",)
    config.umbrella_command = "nox"
    config.command_layout = "umbrella"
    config.command_prefix = "!nox"
    config.text_commands_enabled = False
    config.intents = ["guilds"]
    config.handlers_dir = SUBCOMMANDS_DIR
    config.dictionary_path = tmp_path / "missing.dic"
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def test_build_intents():
    intents = build_intents(["guilds", "message_content", "not_a_flag"])
    assert intents.guilds is True
    assert intents.message_content is True
    assert intents.members is False


def test_umbrella_layout(tmp_path):
    registry = HandlerRegistry(SUBCOMMANDS_DIR)
    registry.discover()
    (descriptor,) = build_descriptors(_bot_config(tmp_path), registry)
    assert descriptor.name == "nox"
    assert len(descriptor.subcommands) == 6


def test_flat_layout(tmp_path):
    registry = HandlerRegistry(SUBCOMMANDS_DIR)
    registry.discover()
    descriptors = build_descriptors(_bot_config(tmp_path, command_layout="flat"), registry)
    assert sorted(d.name for d in descriptors) == [
        "definition", "guildid", "help", "ping", "userinfo", "weather",
    ]


def test_construction_discovers_handlers(tmp_path):
    bot = NoxBot(_bot_config(tmp_path))
    assert len(bot.registry) == 6
    assert bot.text_router is None


def test_text_router_enabled(tmp_path):
    bot = NoxBot(_bot_config(tmp_path, text_commands_enabled=True))
    assert bot.text_router is not None
    assert bot.text_router.prefix == "!nox"


@pytest.mark.asyncio
async def test_start_registers_before_login(tmp_path):
    bot = NoxBot(_bot_config(tmp_path))
    order = []
    bot.open_session = AsyncMock()
    bot.registrar = MagicMock()
    bot.registrar.register = AsyncMock(side_effect=lambda d: order.append("register"))
    bot.client.login = AsyncMock(side_effect=lambda token: order.append("login"))

    await bot.start()

    assert order == ["register", "login"]
    (descriptors,) = bot.registrar.register.await_args.args
    assert descriptors[0].name == "nox"


@pytest.mark.asyncio
async def test_registration_failure_is_fatal(tmp_path):
    from noxbot.exceptions import RegistrationError

    bot = NoxBot(_bot_config(tmp_path))
    bot.open_session = AsyncMock()
    bot.registrar = MagicMock()
    bot.registrar.register = AsyncMock(side_effect=RegistrationError("no", status=401))
    bot.client.login = AsyncMock()

    with pytest.raises(RegistrationError):
        await bot.start()
    bot.client.login.assert_not_awaited()


@pytest.mark.asyncio
async def test_interaction_is_dispatched_in_background(tmp_path):
    bot = NoxBot(_bot_config(tmp_path))
    bot.dispatcher.dispatch = AsyncMock()
    event = MagicMock()
    event.is_chat_input = True

    with patch("noxbot.bot.InteractionEvent", return_value=event):
        await bot.handle_interaction(MagicMock())
        await asyncio.sleep(0)

    bot.dispatcher.dispatch.assert_awaited_once_with(event)


@pytest.mark.asyncio
async def test_message_errors_are_contained(tmp_path):
    bot = NoxBot(_bot_config(tmp_path, text_commands_enabled=True))
    bot.text_router.handle_message = AsyncMock(side_effect=RuntimeError("boom"))

    await bot.handle_message(MagicMock())


def test_reload_handlers(tmp_path):
    bot = NoxBot(_bot_config(tmp_path))
    bot.reload_handlers()
    assert len(bot.registry) == 6
