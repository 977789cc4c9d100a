"""Command framework for the Nox bot.

Provides the InvocationContext/InboundEvent abstractions, the
BotServices dependency container, and the HandlerRegistry that
discovers handler modules on disk.
"""

from .base import BotServices, HandlerEntry, InboundEvent, InvocationContext
from .registry import HandlerRegistry

__all__ = [
    "BotServices",
    "HandlerEntry",
    "HandlerRegistry",
    "InboundEvent",
    "InvocationContext",
]
