"""Custom exception hierarchy for noxbot.

Separates startup-fatal failures (configuration, registration) from the
recoverable ones raised while loading handler modules or talking to
upstream HTTP services, so callers can decide what is worth retrying and
what must end the process.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Classification of errors for retry decisions."""
    TRANSIENT = "transient"          # Worth retrying (timeout, rate limit)
    PERMANENT = "permanent"          # Not worth retrying (bad input, 404)
    INFRASTRUCTURE = "infrastructure"  # Missing config, bad credentials


class NoxError(Exception):
    """Base exception for all noxbot errors.

    Attributes:
        message: Human-readable error description.
        category: Error classification for retry/escalation decisions.
        module: Originating module name (e.g. "registrar").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.category = category
        self.module = module
        self.context = context
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether this error is worth retrying."""
        return self.category == ErrorCategory.TRANSIENT

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return (
            f"{cls}({self.message!r}, category={self.category.value!r}, "
            f"module={self.module!r})"
        )


class ConfigurationError(NoxError):
    """Invalid or missing configuration.

    Defaults to INFRASTRUCTURE because config issues are environmental
    and won't resolve by retrying.
    """

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(
            message, category=category, module=module or "config", **context
        )


class RegistrationError(NoxError):
    """Discord rejected a command descriptor push.

    Attributes:
        status: HTTP status returned by the command-management API.
        scope: "global" or "guild:<id>".
    """

    def __init__(
        self,
        message: str = "",
        *,
        status: Optional[int] = None,
        scope: Optional[str] = None,
        category: Optional[ErrorCategory] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.status = status
        self.scope = scope
        if category is None:
            category = (
                ErrorCategory.TRANSIENT
                if status == 429 or (status is not None and status >= 500)
                else ErrorCategory.PERMANENT
            )
        super().__init__(
            message, category=category, module=module or "registrar", **context
        )


class HandlerLoadError(NoxError):
    """A handler module could not be imported.

    Attributes:
        path: Filesystem path of the offending module.
    """

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.path = path
        super().__init__(
            message, category=category, module=module or "commands.registry", **context
        )


class UpstreamError(NoxError):
    """An upstream HTTP service failed or timed out.

    Attributes:
        kind: One of "timeout", "not_found", "unauthorized",
            "rate_limited" or "failed". Handlers map it to the
            message shown to the user.
        status: HTTP status, when the service answered at all.
    """

    KINDS = ("timeout", "not_found", "unauthorized", "rate_limited", "failed")

    def __init__(
        self,
        message: str = "",
        *,
        kind: str = "failed",
        status: Optional[int] = None,
        category: Optional[ErrorCategory] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        if kind not in self.KINDS:
            kind = "failed"
        self.kind = kind
        self.status = status
        if category is None:
            category = (
                ErrorCategory.TRANSIENT
                if kind in ("timeout", "rate_limited")
                else ErrorCategory.PERMANENT
            )
        super().__init__(
            message, category=category, module=module or "handlers", **context
        )

    @classmethod
    def from_status(cls, status: int, message: str = "", **context: Any) -> "UpstreamError":
        """Build an UpstreamError whose kind matches an HTTP status."""
        kind = {
            401: "unauthorized",
            404: "not_found",
            429: "rate_limited",
        }.get(status, "failed")
        return cls(message or f"HTTP {status}", kind=kind, status=status, **context)
