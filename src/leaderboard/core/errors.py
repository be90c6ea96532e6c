"""Custom exceptions for configuration and index access errors."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Base exception for configuration errors with optional suggestions."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[Configuration Error] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class IndexConnectionError(ConfigurationError):
    """Error when the score index cannot be reached at startup."""

    def __init__(self, target: str, reason: str) -> None:
        super().__init__(
            f"Failed to connect to score index at {target}: {reason}",
            "Make sure redis-server is running, or use the in-memory backend "
            "(backend: memory).",
        )


class IndexUnavailableError(Exception):
    """Raised by index backends when a read or write cannot be completed.

    Ranking engines catch this at their public boundary and degrade to
    "no result" instead of propagating it to callers.
    """

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Score index unavailable during {operation}{detail}")
