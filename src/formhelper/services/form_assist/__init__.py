"""AI-assisted form error explanations."""

from formhelper.services.form_assist.assistant import FormAssistant
from formhelper.services.form_assist.streaming import FALLBACK_MESSAGE


__all__ = ["FALLBACK_MESSAGE", "FormAssistant"]
