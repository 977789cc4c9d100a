"""Configuration management for noxbot.

Loads environment variables (.env) and optional YAML settings
(settings.yaml) into a typed Config object. Secrets come from the
environment only; everything else has a settings.yaml key and a
sensible default.

Key classes:
    Config: Central configuration manager.

Key functions:
    get_config: Singleton accessor for the global Config instance.
"""

import os
import re
from pathlib import Path
from typing import List, Optional, Tuple

import structlog
import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = structlog.get_logger("noxbot.bot")

REQUIRED_ENV = ("DISCORD_TOKEN", "CLIENT_ID")

COMMAND_LAYOUTS = ("umbrella", "flat")

# Discord snowflakes are 17-20 digit integers
SNOWFLAKE_PATTERN = re.compile(r"^\d{17,20}$")


class Config:
    """Central configuration manager for noxbot.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``<repo_root>/config/``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = config_dir

        env_file = config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)
        else:
            # Fall back to a .env in the working directory
            load_dotenv()

        self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if filepath.exists():
            with open(filepath, "r") as f:
                return yaml.safe_load(f) or {}
        return {}

    def validate(self):
        """Validate required settings at startup.

        Raises:
            ConfigurationError: If DISCORD_TOKEN or CLIENT_ID is unset.
                The message names every missing variable.

        Suspicious-looking values (short token, non-numeric client id)
        only produce warnings; Discord itself is the final judge.
        """
        missing = [key for key in REQUIRED_ENV if not os.environ.get(key)]
        if missing:
            logger.error("missing_required_env", missing=missing)
            raise ConfigurationError(
                "Missing required environment variables: " + ", ".join(missing),
                setting_name=missing[0],
            )

        token = self.discord_token
        if len(token) < 50 or token.count(".") != 2:
            logger.warning("discord_token_suspicious", length=len(token))

        if not SNOWFLAKE_PATTERN.match(self.client_id):
            logger.warning("client_id_not_numeric")

        for guild_id in self.development_guild_ids:
            if not SNOWFLAKE_PATTERN.match(guild_id):
                logger.warning("guild_id_not_numeric", guild_id=guild_id)

        if self.settings.get("command_layout", "umbrella") not in COMMAND_LAYOUTS:
            logger.error(
                "config_invalid_value",
                key="command_layout",
                value=self.settings.get("command_layout"),
                valid=list(COMMAND_LAYOUTS),
            )

    # Discord credentials
    @property
    def discord_token(self) -> str:
        """Bot token used for the gateway login and REST calls."""
        return os.environ.get("DISCORD_TOKEN", "")

    @property
    def client_id(self) -> str:
        """Application (client) ID that owns the slash commands."""
        return os.environ.get("CLIENT_ID", "")

    @property
    def development_guild_ids(self) -> Tuple[str, ...]:
        """Guilds that receive instant command registration.

        GUILD_ID may hold one ID or a comma-separated list. Entries
        under ``development_guilds`` in settings.yaml are appended.
        Order is preserved and duplicates are dropped.
        """
        ids: List[str] = []
        env_value = os.environ.get("GUILD_ID", "")
        ids.extend(part.strip() for part in env_value.split(",") if part.strip())
        configured = self.settings.get("development_guilds", [])
        if isinstance(configured, list):
            ids.extend(str(g).strip() for g in configured if str(g).strip())
        elif configured:
            logger.error("development_guilds_invalid_type", type=type(configured).__name__)
        return tuple(dict.fromkeys(ids))

    @property
    def openweather_api_key(self) -> str:
        """OpenWeatherMap API key (empty when unset or left as the placeholder)."""
        key = os.environ.get("OPENWEATHER_API_KEY", "")
        if key == "your_openweather_api_key_here":
            return ""
        return key

    # Command layout
    @property
    def umbrella_command(self) -> str:
        """Top-level command name that hosts every handler as a sub-command."""
        return self.settings.get("umbrella_command", "nox")

    @property
    def command_layout(self) -> str:
        """Either ``umbrella`` (one /nox command) or ``flat`` (one command per handler)."""
        layout = self.settings.get("command_layout", "umbrella")
        return layout if layout in COMMAND_LAYOUTS else "umbrella"

    @property
    def command_prefix(self) -> str:
        """Prefix that marks a legacy text command (default ``!nox``)."""
        return self.settings.get("command_prefix", "!nox")

    @property
    def text_commands_enabled(self) -> bool:
        """Whether prefix text commands are routed (needs the message_content intent)."""
        return bool(self.settings.get("text_commands", False))

    @property
    def intents(self) -> List[str]:
        """Gateway intent flag names (discord.Intents attribute names)."""
        configured = self.settings.get("intents")
        if isinstance(configured, list) and configured:
            return [str(i) for i in configured]
        intents = ["guilds"]
        if self.text_commands_enabled:
            intents += ["guild_messages", "message_content"]
        return intents

    @property
    def handlers_dir(self) -> Path:
        """Directory scanned for handler modules."""
        configured = self.settings.get("handlers_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(__file__).parent / "commands" / "subcommands"

    # Handler settings
    @property
    def weather_default_location(self) -> str:
        """Location used by /nox weather when none is given."""
        return self.settings.get("weather", {}).get("default_location", "London")

    @property
    def weather_timeout(self) -> float:
        """Per-request timeout in seconds for OpenWeatherMap calls."""
        return float(self.settings.get("weather", {}).get("timeout", 10))

    @property
    def definition_timeout(self) -> float:
        """Per-request timeout in seconds for Priberam lookups."""
        return float(self.settings.get("definition", {}).get("timeout", 8))

    @property
    def dictionary_path(self) -> Path:
        """Hunspell .dic word list used for Portuguese accent correction."""
        configured = self.settings.get("definition", {}).get("dictionary_path")
        if configured:
            return Path(configured).expanduser()
        return (
            Path(__file__).parent.parent
            / "assets" / "dictionaries" / "portuguese" / "pt_PT.dic"
        )

    # Logging
    @property
    def log_dir(self) -> Path:
        """Get log directory path."""
        configured = self.settings.get("log_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(__file__).parent.parent / "logs"

    @property
    def logging_level(self) -> str:
        """Global log level.

        Defaults to DEBUG when NOX_ENV=development, INFO otherwise.
        """
        log_config = self.settings.get("logging", {})
        default = "DEBUG" if os.environ.get("NOX_ENV") == "development" else "INFO"
        return log_config.get("level", default)

    @property
    def logging_subsystem_levels(self) -> dict:
        """Per-subsystem log level overrides. E.g. {"registrar": "DEBUG"}."""
        log_config = self.settings.get("logging", {})
        return log_config.get("subsystem_levels", {})

    @property
    def logging_max_file_size_mb(self) -> int:
        """Max size per log file in MB before rotation (default 10)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("max_file_size_mb", 10)

    @property
    def logging_backup_count(self) -> int:
        """Number of rotated log files to keep (default 5)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("backup_count", 5)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
