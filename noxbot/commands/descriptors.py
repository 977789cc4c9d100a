"""Build Discord command descriptors from registered handlers.

The parameter shape and description of each command come from static
tables keyed by command name, so the slash-command UI stays stable no
matter what order handler files are discovered in. The same shape
table drives parameter extraction in the Dispatcher.
"""

from typing import Dict, Iterable, List, Tuple

from .base import FALLBACK_NAME, HandlerEntry
from .models import CommandDescriptor, ParameterKind, ParameterSpec

UMBRELLA_NAME = "nox"
UMBRELLA_DESCRIPTION = "AI assistant with various subcommands"

PARAMETER_SHAPES: Dict[str, Tuple[ParameterSpec, ...]] = {
    "weather": (
        ParameterSpec(
            name="location",
            kind=ParameterKind.STRING,
            required=False,
            description="City name (defaults to London)",
        ),
    ),
    "userinfo": (
        ParameterSpec(
            name="user",
            kind=ParameterKind.USER,
            required=False,
            description="User to get info about (defaults to you)",
        ),
    ),
    "definition": (
        ParameterSpec(
            name="word",
            kind=ParameterKind.STRING,
            required=True,
            description="Portuguese word to define",
        ),
    ),
}

DESCRIPTIONS: Dict[str, str] = {
    "weather": "Get current weather information",
    "help": "Show available commands and usage",
    "ping": "Test bot response time",
    "userinfo": "Get information about a user",
    "guildid": "Get the current server/guild ID",
    "definition": "Get Portuguese word definition from Priberam dictionary",
}


def parameters_for(name: str) -> Tuple[ParameterSpec, ...]:
    """Parameter shape for a command name (empty for most commands)."""
    return PARAMETER_SHAPES.get(name, ())


def description_for(name: str) -> str:
    """Human-readable description, defaulting to ``"<name> command"``."""
    return DESCRIPTIONS.get(name, f"{name} command")


def describe(name: str) -> CommandDescriptor:
    """Build the descriptor for a single command name."""
    return CommandDescriptor(
        name=name,
        description=description_for(name),
        parameters=list(parameters_for(name)),
    )


def build(entries: Iterable[HandlerEntry]) -> List[CommandDescriptor]:
    """One top-level descriptor per handler, in input order."""
    return [describe(entry.name) for entry in entries if entry.name != FALLBACK_NAME]


def build_umbrella(
    entries: Iterable[HandlerEntry],
    name: str = UMBRELLA_NAME,
    description: str = UMBRELLA_DESCRIPTION,
) -> CommandDescriptor:
    """A single top-level descriptor nesting every handler as a sub-command."""
    return CommandDescriptor(
        name=name,
        description=description,
        subcommands=build(entries),
    )
