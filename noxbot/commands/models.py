"""Pydantic models shared by the command layer.

Command descriptors (what Discord lists in its slash-command UI) and
the platform-neutral reply payloads handlers build (embeds,
attachments, user references). Each model knows how to render itself
as the Discord JSON payload; nothing here performs I/O.

Descriptor models:
    ParameterKind, ParameterSpec, CommandDescriptor

Reply models:
    EmbedField, Embed, Attachment

Platform references:
    UserRef, GuildRef
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Discord application command / option type codes
COMMAND_TYPE_CHAT_INPUT = 1
OPTION_TYPE_SUB_COMMAND = 1
OPTION_TYPE_STRING = 3
OPTION_TYPE_USER = 6

DEFAULT_EMBED_COLOR = 0x0099FF


class ParameterKind(str, Enum):
    """Type of a command parameter."""
    STRING = "string"
    USER = "user"
    NONE = "none"


_OPTION_TYPES = {
    ParameterKind.STRING: OPTION_TYPE_STRING,
    ParameterKind.USER: OPTION_TYPE_USER,
}


class ParameterSpec(BaseModel):
    """One typed parameter of a command."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: ParameterKind
    required: bool = False
    description: str = ""

    def to_payload(self) -> Dict[str, Any]:
        """Render as a Discord application command option."""
        return {
            "type": _OPTION_TYPES[self.kind],
            "name": self.name,
            "description": self.description,
            "required": self.required,
        }


class CommandDescriptor(BaseModel):
    """Platform-facing declaration of a command.

    A descriptor either carries its own ``parameters`` (a leaf command
    or sub-command) or a list of ``subcommands`` (the umbrella
    command). Built by ``noxbot.commands.descriptors``; discarded after
    registration.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: List[ParameterSpec] = Field(default_factory=list)
    subcommands: List["CommandDescriptor"] = Field(default_factory=list)

    def _options(self) -> List[Dict[str, Any]]:
        if self.subcommands:
            return [sub.to_subcommand_payload() for sub in self.subcommands]
        return [
            p.to_payload() for p in self.parameters if p.kind != ParameterKind.NONE
        ]

    def to_subcommand_payload(self) -> Dict[str, Any]:
        """Render as a sub-command option nested under the umbrella command."""
        return {
            "type": OPTION_TYPE_SUB_COMMAND,
            "name": self.name,
            "description": self.description,
            "options": self._options(),
        }

    def to_payload(self) -> Dict[str, Any]:
        """Render as a top-level chat-input application command."""
        return {
            "type": COMMAND_TYPE_CHAT_INPUT,
            "name": self.name,
            "description": self.description,
            "options": self._options(),
        }


class EmbedField(BaseModel):
    """A name/value row inside an embed."""

    name: str
    value: str
    inline: bool = False


class Embed(BaseModel):
    """Rich reply card.

    ``image_url`` may point at an uploaded attachment using the
    ``attachment://<filename>`` scheme.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    color: int = DEFAULT_EMBED_COLOR
    fields: List[EmbedField] = Field(default_factory=list)
    footer: Optional[str] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    timestamp: Optional[datetime] = None

    def add_field(self, name: str, value: str, inline: bool = False) -> "Embed":
        self.fields.append(EmbedField(name=name, value=value, inline=inline))
        return self

    def to_payload(self) -> Dict[str, Any]:
        """Render as a Discord embed object, omitting unset members."""
        payload: Dict[str, Any] = {"color": self.color}
        if self.title:
            payload["title"] = self.title
        if self.description:
            payload["description"] = self.description
        if self.fields:
            payload["fields"] = [f.model_dump() for f in self.fields]
        if self.footer:
            payload["footer"] = {"text": self.footer}
        if self.image_url:
            payload["image"] = {"url": self.image_url}
        if self.thumbnail_url:
            payload["thumbnail"] = {"url": self.thumbnail_url}
        if self.timestamp:
            payload["timestamp"] = self.timestamp.isoformat()
        return payload


class Attachment(BaseModel):
    """A file uploaded alongside a reply."""

    filename: str
    data: bytes


class UserRef(BaseModel):
    """A Discord user, optionally with guild membership details."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    avatar_url: str = ""
    created_at: Optional[datetime] = None
    # Guild membership (None when unknown or outside a guild)
    joined_at: Optional[datetime] = None
    roles: List[str] = Field(default_factory=list)

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"


class GuildRef(BaseModel):
    """The guild an invocation came from."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
