"""Prompt construction for form error explanations.

Values are interpolated verbatim. The prompt is only ever read by the model;
sanitization applies to the model's response, not to what we send it.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from formhelper.schemas.form_assist import FormError


DEFAULT_OUTPUT_FORMAT = """
# Field:[Field Name]

## Problem
[Explain briefly and clearly the cause of the error for {current value} ]

## Solution
[Provide step-by-step guidance on how to correct the error]
## Recommended Input
[Rewrite the {current value} into a valid input value and wrap it in backticks(`)]
"""

FORM_OUTPUT_FORMAT = """
## [Field Name]

### Problem
[Briefly explain the cause of the error for {current value}]

### Solution
[Provide step-by-step guidance on how to correct the error]

### Recommended Input
[Rewrite the {current value} into a valid input]

Repeat this structure for each error field.
"""


def _error_block(error: FormError) -> str:
    return (
        f"Field: `{error.field_path}`\n"
        f"Value: `{error.value}`\n"
        f"Error: `{error.message_text}`\n"
    )


def build_prompt(
    form_guide: str, error: FormError, output_format: str | None = None
) -> str:
    """Render the explanation prompt for a single field error."""
    template = output_format if output_format is not None else DEFAULT_OUTPUT_FORMAT
    return (
        "# Form Guide:\n"
        "```\n"
        f"{form_guide}\n"
        "```\n\n"
        "# Current form error:\n"
        f"{_error_block(error)}\n"
        "Please provide a response in the following format:\n"
        f"{template}"
    )


def build_form_prompt(
    form_guide: str,
    errors: Sequence[FormError],
    output_format: str | None = None,
) -> str:
    """Render one prompt covering every failing field of the form."""
    template = output_format if output_format is not None else FORM_OUTPUT_FORMAT
    blocks = "\n".join(_error_block(error) for error in errors)
    return (
        "Form Guide:\n"
        f"{form_guide}\n\n"
        "Current form errors:\n"
        f"{blocks}\n"
        "Please provide a response in the following format for each error:\n"
        f"{template}"
    )


def collect_field_errors(fields: Iterable[FormError]) -> list[FormError]:
    """Keep the touched fields that have messages and a value, in form order."""
    return [field for field in fields if field.touched and field.is_explainable()]
