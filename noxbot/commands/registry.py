"""Handler discovery and lookup.

Scans a directory of handler modules, executes each one, and maps the
public coroutine functions it defines to command names. Dropping a new
``<name>.py`` file into the directory (and calling reload(), or
restarting) is all it takes to add a command.
"""

import importlib.util
import inspect
import sys
from pathlib import Path
from typing import Dict, List, Optional

import structlog

from ..exceptions import HandlerLoadError
from .base import COMMAND_NAME_PATTERN, FALLBACK_NAME, HandlerEntry

logger = structlog.get_logger("noxbot.commands")

_MODULE_PREFIX = "noxbot_handlers"


def _load_module(path: Path):
    """Execute a handler file as a fresh module.

    A new module object is created on every call, so reload() sees
    edits and removals on disk.
    """
    module_name = f"{_MODULE_PREFIX}.{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise HandlerLoadError("Cannot build import spec", path=str(path))
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        raise
    return module


def exported_handlers(module) -> List[tuple]:
    """Return ``(name, function)`` for every public coroutine the module defines.

    Imported functions are ignored so a handler module can import
    helpers without exporting them as commands. Order follows the
    definition order in the source file.
    """
    found = []
    for attr_name, attr in vars(module).items():
        if attr_name.startswith("_"):
            continue
        if not inspect.iscoroutinefunction(attr):
            continue
        if getattr(attr, "__module__", None) != module.__name__:
            continue
        found.append((attr_name, attr))
    return found


class HandlerRegistry:
    """Maps command names to handler coroutines.

    Args:
        handlers_dir: Directory scanned for ``*.py`` handler modules.
            Files whose name starts with ``_`` are skipped.

    Duplicate names are last-write-wins in discovery order (sorted
    filename, then definition order); the replacement keeps the
    original entry's position and a warning is logged.
    """

    def __init__(self, handlers_dir: Path):
        self.handlers_dir = Path(handlers_dir)
        self._handlers: Dict[str, HandlerEntry] = {}
        self._fallback: Optional[HandlerEntry] = None

    def discover(self) -> None:
        """Scan handlers_dir and register every exported handler."""
        if not self.handlers_dir.is_dir():
            logger.warning("handlers_dir_missing", path=str(self.handlers_dir))
            return

        failed = 0
        for path in sorted(self.handlers_dir.glob("*.py")):
            if path.name.startswith("_"):
                continue
            try:
                module = _load_module(path)
            except Exception as e:
                failed += 1
                logger.error(
                    "handler_module_load_failed",
                    file=path.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            exports = exported_handlers(module)
            if not exports:
                logger.warning("handler_module_empty", file=path.name)
            for name, func in exports:
                self._add(HandlerEntry(name=name, execute=func, source=path.name))

        logger.info(
            "handler_discovery_complete",
            handlers=len(self._handlers),
            fallback=self._fallback is not None,
            failed_modules=failed,
        )

    def _add(self, entry: HandlerEntry) -> None:
        if entry.name == FALLBACK_NAME:
            self._fallback = entry
            logger.debug("fallback_handler_loaded", source=entry.source)
            return
        if not COMMAND_NAME_PATTERN.match(entry.name):
            logger.warning(
                "handler_invalid_name", command=entry.name, source=entry.source
            )
            return
        previous = self._handlers.get(entry.name)
        if previous is not None:
            logger.warning(
                "handler_name_conflict",
                command=entry.name,
                replaced=previous.source,
                source=entry.source,
            )
        self._handlers[entry.name] = entry
        logger.debug("handler_loaded", command=entry.name, source=entry.source)

    def reload(self) -> None:
        """Discard every entry and re-run discovery.

        The map is empty between the clear and the end of discovery;
        callers must not dispatch concurrently.
        """
        logger.info("handler_reload_started")
        self._handlers.clear()
        self._fallback = None
        self.discover()

    def get(self, name: str) -> Optional[HandlerEntry]:
        """Look up a handler by command name."""
        return self._handlers.get(name)

    def entries(self) -> List[HandlerEntry]:
        """All registered handlers in discovery order (fallback excluded)."""
        return list(self._handlers.values())

    @property
    def fallback(self) -> Optional[HandlerEntry]:
        """The catch-all handler for free text, if any module exports one."""
        return self._fallback

    @property
    def names(self) -> frozenset:
        """All registered command names."""
        return frozenset(self._handlers.keys())

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, name: str) -> bool:
        return name in self._handlers
