"""Main entry point for noxbot.

Initializes logging in two phases (defaults then config-driven),
creates the NoxBot, and runs the async event loop with graceful
shutdown on SIGTERM/SIGINT. SIGHUP re-scans the handler directory.

Key functions:
    main: Async entry point -- sets up logging, config, bot, and
        signal handlers, then holds the gateway connection.
    refresh: Async entry point for ``noxbot-refresh`` -- removes every
        registered command, then registers the current set again.
    run / run_refresh: Synchronous console-script wrappers.
"""

import asyncio
import signal
import sys

import structlog

from . import __version__
from .exceptions import ConfigurationError, NoxError
from .logging_config import setup_logging

# Gives Discord time to drop the old command set before re-registering
REFRESH_PAUSE_SECONDS = 2


def _load_config(logger):
    from .config import get_config

    config = get_config()
    try:
        config.validate()
    except ConfigurationError as e:
        logger.error("config_invalid", error=str(e))
        sys.exit(1)
    return config


async def main():
    """Main async entry point."""
    # Phase 1: defaults, cache_logger_on_first_use=False
    setup_logging()
    logger = structlog.get_logger("noxbot.bot")

    logger.info("noxbot_starting", version=__version__)

    # Import here to ensure logging is configured first
    from .bot import NoxBot

    config = _load_config(logger)

    # Phase 2: reconfigure with real config, cache_logger_on_first_use=True
    setup_logging(config)

    bot = NoxBot(config)

    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def handle_shutdown(sig):
        logger.info("shutdown_signal_received", signal=sig.name)
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, handle_shutdown, sig)
        except NotImplementedError:
            if sig == signal.SIGINT:
                signal.signal(
                    signal.SIGINT,
                    lambda s, f: handle_shutdown(signal.SIGINT),
                )

    if hasattr(signal, "SIGHUP"):
        try:
            loop.add_signal_handler(signal.SIGHUP, bot.reload_handlers)
        except NotImplementedError:
            pass

    exit_code = 0
    bot_task = asyncio.create_task(bot.run())
    shutdown_task = asyncio.create_task(shutdown_event.wait())
    try:
        done, _ = await asyncio.wait(
            {bot_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED
        )
        if bot_task in done:
            # The bot only returns on its own when startup or the gateway failed
            exc = bot_task.exception()
            if exc is not None:
                logger.error(
                    "bot_error",
                    error=str(exc),
                    error_type=type(exc).__name__,
                    exc_info=exc,
                )
                exit_code = 1
        else:
            bot_task.cancel()
            try:
                await bot_task
            except asyncio.CancelledError:
                pass
    finally:
        shutdown_task.cancel()
        await bot.stop()
        logger.info("noxbot_stopped")

    if exit_code:
        sys.exit(exit_code)


async def refresh():
    """Remove all registered commands, pause, then register the current set."""
    setup_logging()
    logger = structlog.get_logger("noxbot.registrar")

    from .bot import NoxBot, build_descriptors

    config = _load_config(logger)
    setup_logging(config)

    bot = NoxBot(config)
    await bot.open_session()
    try:
        logger.info("refresh_started", commands=sorted(bot.registry.names))
        await bot.registrar.unregister_all()
        await asyncio.sleep(REFRESH_PAUSE_SECONDS)
        await bot.registrar.register(build_descriptors(config, bot.registry))
        logger.info("refresh_complete")
    except NoxError as e:
        logger.error("refresh_failed", error=str(e))
        sys.exit(1)
    finally:
        await bot.session.close()


def run():
    """Synchronous entry point for the ``noxbot`` console script."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
    except SystemExit as e:
        sys.exit(e.code)


def run_refresh():
    """Synchronous entry point for the ``noxbot-refresh`` console script."""
    try:
        asyncio.run(refresh())
    except KeyboardInterrupt:
        pass
    except SystemExit as e:
        sys.exit(e.code)


if __name__ == "__main__":
    run()
