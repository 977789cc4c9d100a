"""Tests for handler discovery and lookup."""

from noxbot.commands.registry import HandlerRegistry

from conftest import SUBCOMMANDS_DIR


def _write(directory, name, source):
    (directory / name).write_text(source)


def test_discovers_public_coroutines(tmp_path):
    _write(tmp_path, "alpha.py", "async def alpha(ctx):\n    pass\n")
    _write(tmp_path, "beta.py", "async def beta(ctx):\n    pass\n")

    registry = HandlerRegistry(tmp_path)
    registry.discover()

    assert registry.names == frozenset({"alpha", "beta"})
    assert [e.name for e in registry.entries()] == ["alpha", "beta"]
    assert registry.get("alpha").source == "alpha.py"


def test_ignores_sync_private_and_imported_functions(tmp_path):
    _write(
        tmp_path,
        "mixed.py",
        "from asyncio import sleep\n"
        "def sync_helper():\n    pass\n"
        "async def _private(ctx):\n    pass\n"
        "async def visible(ctx):\n    pass\n",
    )
    registry = HandlerRegistry(tmp_path)
    registry.discover()
    assert registry.names == frozenset({"visible"})


def test_underscore_files_are_skipped(tmp_path):
    _write(tmp_path, "_shared.py", "async def shared(ctx):\n    pass\n")
    registry = HandlerRegistry(tmp_path)
    registry.discover()
    assert len(registry) == 0


def test_fallback_is_kept_apart(tmp_path):
    _write(tmp_path, "chat.py", "async def fallback(ctx, query):\n    pass\n")
    registry = HandlerRegistry(tmp_path)
    registry.discover()

    assert registry.fallback is not None
    assert "fallback" not in registry
    assert registry.entries() == []


def test_broken_module_does_not_stop_discovery(tmp_path):
    _write(tmp_path, "aaa_broken.py", "raise RuntimeError('boom')\n")
    _write(tmp_path, "good.py", "async def good(ctx):\n    pass\n")

    registry = HandlerRegistry(tmp_path)
    registry.discover()

    assert registry.names == frozenset({"good"})


def test_syntax_error_module_is_skipped(tmp_path):
    _write(tmp_path, "bad.py", "async def bad(ctx)\n    pass\n")
    registry = HandlerRegistry(tmp_path)
    registry.discover()
    assert len(registry) == 0


def test_duplicate_name_last_write_wins_in_place(tmp_path):
    _write(tmp_path, "a.py", "async def first(ctx):\n    pass\nasync def shared(ctx):\n    pass\n")
    _write(tmp_path, "b.py", "async def shared(ctx):\n    pass\n")

    registry = HandlerRegistry(tmp_path)
    registry.discover()

    assert registry.get("shared").source == "b.py"
    assert [e.name for e in registry.entries()] == ["first", "shared"]


def test_invalid_command_name_is_rejected(tmp_path):
    _write(tmp_path, "loud.py", "async def Loud(ctx):\n    pass\n")
    registry = HandlerRegistry(tmp_path)
    registry.discover()
    assert len(registry) == 0


def test_missing_directory_yields_empty_registry(tmp_path):
    registry = HandlerRegistry(tmp_path / "nope")
    registry.discover()
    assert len(registry) == 0
    assert registry.fallback is None


def test_reload_picks_up_added_and_removed_files(tmp_path):
    _write(tmp_path, "one.py", "async def one(ctx):\n    pass\n")
    registry = HandlerRegistry(tmp_path)
    registry.discover()
    assert registry.names == frozenset({"one"})

    (tmp_path / "one.py").unlink()
    _write(tmp_path, "two.py", "async def two(ctx):\n    pass\n")
    registry.reload()

    assert registry.names == frozenset({"two"})


def test_get_unknown_returns_none(tmp_path):
    registry = HandlerRegistry(tmp_path)
    registry.discover()
    assert registry.get("missing") is None


def test_builtin_handlers():
    registry = HandlerRegistry(SUBCOMMANDS_DIR)
    registry.discover()

    assert registry.names == frozenset(
        {"definition", "guildid", "help", "ping", "userinfo", "weather"}
    )
    assert registry.fallback is not None
