"""Built-in form guide and sample field states for the sign-up form."""

from __future__ import annotations

from formhelper.core.config import Settings
from formhelper.schemas.form_assist import FormError


SIGN_UP_FORM_GUIDE = """
### Form Filling Guide

1. **Username**:
   - Use only a-z, A-Z, 0-9, -, _, ., &, ,, /, (, )
   - Maximum 255 characters
   - Recommend to use the kebab-case
   - Must be unique

2. **Email**:
   - Enter a valid email address
   - Required field

3. **Password**:
   - Choose a strong password
   - Required field

4. **Confirm Password**:
   - Re-enter your password
   - Must match the password field

5. **Gender**:
   - Select your gender: Male, Female, or Other
   - Required field

6. **Description**:
   - Briefly describe yourself
   - Maximum 200 characters
   - Required field

7. **Country**:
   - Select your country from the provided list
   - Options include: Indonesia, Japan, Korea, Malaysia, Singapore, Taiwan, Thailand, Vietnam
   - Required field

Remember to review all entries before submitting the form. Ensure all required fields are filled and meet the specified criteria.
"""


# Field states produced by validating the "Fill Sample Data" values
SAMPLE_FIELD_STATES: tuple[FormError, ...] = (
    FormError(
        name=("username",),
        errors=("Username can only contain a-zA-Z0-9-_.&,/(), max 255 characters",),
        value="Invalid Username!",
        touched=True,
    ),
    FormError(
        name=("email",),
        errors=("Please input a valid email",),
        value="invalid-email",
        touched=True,
    ),
    FormError(name=("password",), errors=(), value="short", touched=True),
    FormError(
        name=("confirmPassword",),
        errors=("The two passwords do not match",),
        value="not-matching",
        touched=True,
    ),
    FormError(
        name=("gender",),
        errors=("Please select your gender",),
        value="invalid",
        touched=True,
    ),
    FormError(
        name=("country",),
        errors=("Please select your country",),
        value="non-existent-country",
        touched=True,
    ),
    FormError(
        name=("description",),
        errors=("Description cannot exceed 200 characters",),
        value="A" * 201,
        touched=True,
    ),
)


def load_form_guide(settings: Settings) -> str:
    """Return the configured form guide, falling back to the built-in one."""
    if settings.FORM_GUIDE_PATH is None:
        return SIGN_UP_FORM_GUIDE
    return settings.FORM_GUIDE_PATH.read_text(encoding="utf-8")
