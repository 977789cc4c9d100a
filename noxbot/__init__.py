"""Nox: a Discord bot with file-discovered slash-command handlers."""

__version__ = "1.0.0"
