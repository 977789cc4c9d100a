"""Built-in /nox sub-command handlers.

Every public coroutine defined in a module here becomes a command of
the same name. ``fallback`` is reserved for free-text input.
"""
