"""Decides which form error changes start an explanation."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from formhelper.schemas.form_assist import FormError
from formhelper.services.form_assist.prompt_builder import (
    build_form_prompt,
    build_prompt,
    collect_field_errors,
)
from formhelper.services.form_assist.streaming import (
    GenerationHandle,
    StreamingResponseController,
)


logger = logging.getLogger(__name__)


class TriggerCoordinator:
    """Turns observed form error changes into generation requests."""

    def __init__(
        self,
        controller: StreamingResponseController,
        form_guide: str,
        output_format: str | None = None,
    ) -> None:
        self._controller = controller
        self._form_guide = form_guide
        self._output_format = output_format

    def on_error_change(self, error: FormError | None) -> GenerationHandle | None:
        """React to the single-field error changing.

        A cleared error leaves the last explanation on screen.
        """
        if error is None:
            return None
        if not error.is_explainable():
            logger.debug(f"Ignoring error for {error.field_path}; nothing to explain")
            return None
        prompt = build_prompt(self._form_guide, error, self._output_format)
        return self._controller.start(prompt, error)

    def on_fields_change(self, fields: Iterable[FormError]) -> GenerationHandle | None:
        """React to a form-wide field update with one combined explanation."""
        errors = collect_field_errors(fields)
        if not errors:
            return None
        prompt = build_form_prompt(self._form_guide, errors)
        return self._controller.start(prompt, errors[0])

    def clear(self) -> None:
        """Drop the current explanation (the form's "Clear" action)."""
        self._controller.reset()
