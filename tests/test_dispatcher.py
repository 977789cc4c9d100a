"""Tests for event dispatch and failure isolation."""

from unittest.mock import AsyncMock

import pytest

from noxbot.commands.base import HandlerEntry
from noxbot.commands.models import UserRef
from noxbot.commands.registry import HandlerRegistry
from noxbot.dispatcher import ERROR_NOTICE, CommandDispatcher, extract_parameters

from conftest import FakeContext, FakeEvent


def _registry(tmp_path, **handlers):
    registry = HandlerRegistry(tmp_path)
    for name, func in handlers.items():
        registry._add(HandlerEntry(name=name, execute=func, source="test"))
    return registry


@pytest.mark.asyncio
async def test_non_chat_events_are_ignored(tmp_path):
    handler = AsyncMock()
    dispatcher = CommandDispatcher(_registry(tmp_path, ping=handler))

    await dispatcher.dispatch(FakeEvent(subcommand="ping", chat_input=False))

    handler.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_subcommand_sends_nothing(tmp_path):
    dispatcher = CommandDispatcher(_registry(tmp_path))
    event = FakeEvent(subcommand="nonexistent")

    await dispatcher.dispatch(event)

    assert event.context.calls == []


@pytest.mark.asyncio
async def test_umbrella_without_subcommand_sends_nothing(tmp_path):
    handler = AsyncMock()
    dispatcher = CommandDispatcher(_registry(tmp_path, ping=handler))
    event = FakeEvent(subcommand=None)

    await dispatcher.dispatch(event)

    handler.assert_not_awaited()
    assert event.context.calls == []


@pytest.mark.asyncio
async def test_routes_subcommand_to_handler(tmp_path):
    handler = AsyncMock()
    dispatcher = CommandDispatcher(_registry(tmp_path, ping=handler))
    event = FakeEvent(subcommand="ping")

    await dispatcher.dispatch(event)

    handler.assert_awaited_once_with(event.context)


@pytest.mark.asyncio
async def test_flat_command_is_looked_up_directly(tmp_path):
    handler = AsyncMock()
    dispatcher = CommandDispatcher(_registry(tmp_path, ping=handler))
    event = FakeEvent(command="ping")

    await dispatcher.dispatch(event)

    handler.assert_awaited_once_with(event.context)


@pytest.mark.asyncio
async def test_weather_location_is_passed(tmp_path):
    handler = AsyncMock()
    dispatcher = CommandDispatcher(_registry(tmp_path, weather=handler))
    event = FakeEvent(subcommand="weather", strings={"location": "Lisbon"})

    await dispatcher.dispatch(event)

    handler.assert_awaited_once_with(event.context, "Lisbon")


@pytest.mark.asyncio
async def test_missing_string_option_becomes_empty(tmp_path):
    handler = AsyncMock()
    dispatcher = CommandDispatcher(_registry(tmp_path, weather=handler))
    event = FakeEvent(subcommand="weather")

    await dispatcher.dispatch(event)

    handler.assert_awaited_once_with(event.context, "")


@pytest.mark.asyncio
async def test_missing_user_option_becomes_none(tmp_path):
    handler = AsyncMock()
    dispatcher = CommandDispatcher(_registry(tmp_path, userinfo=handler))
    event = FakeEvent(subcommand="userinfo")

    await dispatcher.dispatch(event)

    handler.assert_awaited_once_with(event.context, None)


def test_extract_parameters_user_option():
    bob = UserRef(id="333333333333333333", username="bob")
    event = FakeEvent(subcommand="userinfo", users={"user": bob})
    assert extract_parameters("userinfo", event) == [bob]
    assert extract_parameters("ping", event) == []


@pytest.mark.asyncio
async def test_failure_before_reply_sends_one_private_notice(tmp_path):
    handler = AsyncMock(side_effect=RuntimeError("boom"))
    dispatcher = CommandDispatcher(_registry(tmp_path, ping=handler))
    event = FakeEvent(subcommand="ping")

    await dispatcher.dispatch(event)

    assert event.context.calls == [("reply", ERROR_NOTICE, None, None, True)]


@pytest.mark.asyncio
async def test_failure_after_defer_sends_follow_up(tmp_path):
    async def slow(ctx):
        await ctx.defer_reply()
        raise ValueError("upstream exploded")

    dispatcher = CommandDispatcher(_registry(tmp_path, slow=slow))
    event = FakeEvent(subcommand="slow")

    await dispatcher.dispatch(event)

    assert event.context.of_kind("reply") == []
    assert event.context.of_kind("follow_up") == [("follow_up", ERROR_NOTICE, None, True)]


@pytest.mark.asyncio
async def test_failure_after_reply_sends_follow_up(tmp_path):
    async def chatty(ctx):
        await ctx.reply("partial")
        raise KeyError("x")

    dispatcher = CommandDispatcher(_registry(tmp_path, chatty=chatty))
    event = FakeEvent(subcommand="chatty")

    await dispatcher.dispatch(event)

    assert len(event.context.of_kind("reply")) == 1
    assert len(event.context.of_kind("follow_up")) == 1


@pytest.mark.asyncio
async def test_failing_notice_is_swallowed(tmp_path):
    handler = AsyncMock(side_effect=RuntimeError("boom"))
    dispatcher = CommandDispatcher(_registry(tmp_path, ping=handler))
    context = FakeContext()
    context.reply = AsyncMock(side_effect=RuntimeError("interaction expired"))

    await dispatcher.dispatch(FakeEvent(subcommand="ping", context=context))

    context.reply.assert_awaited_once()


@pytest.mark.asyncio
async def test_one_failure_does_not_affect_next_event(tmp_path):
    calls = []

    async def flaky(ctx):
        calls.append(ctx)
        if len(calls) == 1:
            raise RuntimeError("first call fails")
        await ctx.reply("ok")

    dispatcher = CommandDispatcher(_registry(tmp_path, flaky=flaky))
    first = FakeEvent(subcommand="flaky")
    second = FakeEvent(subcommand="flaky")

    await dispatcher.dispatch(first)
    await dispatcher.dispatch(second)

    assert first.context.calls[0][1] == ERROR_NOTICE
    assert second.context.calls == [("reply", "ok", None, None, False)]


@pytest.mark.asyncio
async def test_custom_umbrella_name(tmp_path):
    handler = AsyncMock()
    dispatcher = CommandDispatcher(_registry(tmp_path, ping=handler), umbrella_name="bot")

    await dispatcher.dispatch(FakeEvent(command="bot", subcommand="ping"))

    handler.assert_awaited_once()


@pytest.mark.asyncio
async def test_dispatch_fallback(tmp_path):
    fallback = AsyncMock()
    registry = _registry(tmp_path, fallback=fallback)
    dispatcher = CommandDispatcher(registry)
    context = FakeContext()

    handled = await dispatcher.dispatch_fallback(context, "what's up")

    assert handled is True
    fallback.assert_awaited_once_with(context, "what's up")


@pytest.mark.asyncio
async def test_dispatch_fallback_missing(tmp_path):
    dispatcher = CommandDispatcher(_registry(tmp_path))
    assert await dispatcher.dispatch_fallback(FakeContext(), "hello") is False
