"""Domain exceptions for the form assistant.

Each exception carries a stable `error_code` so callers and log consumers can
branch on the condition without matching message text. None of these reach
the UI directly: the streaming controller converts them into the fallback
message (or, when no session exists, into an untouched state).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class FormAssistError(Exception):
    """Base class for form assistant domain errors."""

    message: str
    error_code: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.error_code}: {self.message}"


class CapabilityUnavailable(FormAssistError):
    def __init__(
        self, message: str = "No language model capability is available"
    ) -> None:
        super().__init__(message=message, error_code="capability_unavailable")


class SessionInitFailed(FormAssistError):
    def __init__(self, message: str = "Language model session creation failed") -> None:
        super().__init__(message=message, error_code="session_init_failed")


class SessionUnavailable(FormAssistError):
    def __init__(self, message: str = "Session not initialized") -> None:
        super().__init__(message=message, error_code="session_unavailable")


class StreamFailure(FormAssistError):
    def __init__(self, message: str = "Response stream failed") -> None:
        super().__init__(message=message, error_code="stream_failed")
