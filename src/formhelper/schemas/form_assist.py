"""Schemas for AI-assisted form error explanations."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class FormError(BaseModel):
    """One field's current validation failure, as reported by the form.

    ``value`` is ``None`` when the field has no value yet (undefined).
    """

    name: tuple[str, ...] = Field(..., description="Field path segments")
    errors: tuple[str, ...] = Field(default_factory=tuple)
    value: Any = None
    touched: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def field_path(self) -> str:
        return ".".join(self.name)

    @property
    def message_text(self) -> str:
        return ", ".join(self.errors)

    @property
    def has_value(self) -> bool:
        return self.value is not None

    def is_explainable(self) -> bool:
        """Whether this error should start a generation."""
        return bool(self.errors) and self.has_value


class GenerationPhase(StrEnum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    READY = "ready"
    GENERATING = "generating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


DisplayMode = Literal["content", "loading", "empty"]

EMPTY_MESSAGE = "No help message generated yet"


class GenerationState(BaseModel):
    """Published state of the explanation pipeline.

    ``accumulated_html`` always holds the sanitized rendering of the most
    recent snapshot, never a concatenation of snapshots.
    """

    phase: GenerationPhase = GenerationPhase.IDLE
    accumulated_html: str = ""
    current_error: FormError | None = None
    generation_id: int = 0

    model_config = ConfigDict(frozen=True)

    @property
    def help_message(self) -> str:
        return self.accumulated_html

    @property
    def is_generating(self) -> bool:
        return self.phase is GenerationPhase.GENERATING

    @property
    def display_mode(self) -> DisplayMode:
        if self.accumulated_html:
            return "content"
        if self.is_generating:
            return "loading"
        return "empty"
