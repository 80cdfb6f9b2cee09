"""Form helper: AI explanations for form validation errors."""

__version__ = "0.1.0"
