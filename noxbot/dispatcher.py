"""Route inbound events to registered handlers.

Per event: received -> resolved -> executing -> completed, or
failed-reported (handler raised, the user got a generic notice), or
failed-silent (unknown command, or the notice itself failed).
Nothing a handler raises escapes dispatch().
"""

from typing import Any, List, Optional

import structlog

from .commands.base import HandlerEntry, InboundEvent, InvocationContext
from .commands.descriptors import UMBRELLA_NAME, parameters_for
from .commands.models import ParameterKind
from .commands.registry import HandlerRegistry

logger = structlog.get_logger("noxbot.commands")

ERROR_NOTICE = "There was an error while executing this command!"


def extract_parameters(name: str, event: InboundEvent) -> List[Any]:
    """Pull the typed parameters a command expects out of an event.

    String parameters default to ``""`` (handlers read that as "use
    the default"); user parameters default to None (meaning the
    invoking user). Commands without a shape receive nothing.
    """
    params: List[Any] = []
    for spec in parameters_for(name):
        if spec.kind == ParameterKind.STRING:
            params.append(event.get_string(spec.name) or "")
        elif spec.kind == ParameterKind.USER:
            params.append(event.get_user(spec.name))
    return params


class CommandDispatcher:
    """Resolves events against a HandlerRegistry and runs the handler.

    Args:
        registry: Source of handlers. Read on every dispatch, so a
            reload() takes effect immediately.
        umbrella_name: Top-level command whose sub-commands map to
            handlers. Any other command name is looked up directly.
    """

    def __init__(self, registry: HandlerRegistry, umbrella_name: str = UMBRELLA_NAME):
        self.registry = registry
        self.umbrella_name = umbrella_name

    def resolve(self, event: InboundEvent) -> Optional[HandlerEntry]:
        """Find the handler an event targets, or None."""
        if event.command_name == self.umbrella_name:
            sub = event.subcommand_name
            if not sub:
                return None
            return self.registry.get(sub)
        return self.registry.get(event.command_name)

    async def dispatch(self, event: InboundEvent) -> None:
        """Handle one inbound event end to end."""
        if not event.is_chat_input:
            return

        entry = self.resolve(event)
        if entry is None:
            # A registration/propagation race, not a user error
            logger.error("command_not_found", **event.describe())
            return

        params = extract_parameters(entry.name, event)
        await self.invoke(entry, event.context, params)

    async def dispatch_fallback(self, context: InvocationContext, query: str) -> bool:
        """Run the fallback handler on free text.

        Returns:
            False when no module exports a fallback handler.
        """
        entry = self.registry.fallback
        if entry is None:
            logger.debug("fallback_missing")
            return False
        await self.invoke(entry, context, [query])
        return True

    async def invoke(
        self, entry: HandlerEntry, context: InvocationContext, params: List[Any]
    ) -> None:
        """Execute a handler with failure isolation."""
        logger.debug("command_executing", command=entry.name, params=len(params))
        try:
            await entry.execute(context, *params)
        except Exception as e:
            logger.error(
                "command_failed",
                command=entry.name,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            await self._notify_failure(entry.name, context)
            return
        logger.debug("command_completed", command=entry.name)

    async def _notify_failure(self, command: str, context: InvocationContext) -> None:
        """Send exactly one generic error notice for a failed handler."""
        try:
            if context.acknowledged:
                await context.follow_up(ERROR_NOTICE, private=True)
            else:
                await context.reply(ERROR_NOTICE, private=True)
        except Exception as e:
            logger.error(
                "error_notice_failed",
                command=command,
                error=str(e),
                error_type=type(e).__name__,
            )
