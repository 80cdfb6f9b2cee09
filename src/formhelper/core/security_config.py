"""Redaction rules for log output.

Form values flow through the assistant verbatim (they are embedded in the
prompt), but they must never reach the logs when the field holds a secret or
personal data. Keys are matched case-insensitively as substrings, so
``confirmPassword`` and ``user.email`` are both covered.
"""

SENSITIVE_KEYS: set[str] = {
    # Credentials
    "password",
    "passcode",
    "secret",
    "token",
    "api_key",
    "apikey",
    "authorization",
    "otp",
    "pin_code",
    "security_code",
    # Personal data commonly collected by forms
    "email",
    "phone",
    "ssn",
    "social_security_number",
    "address",
    "credit_card",
    "card_number",
    "cvv",
    "bank_account",
    "routing_number",
    "account_number",
}

REDACTED = "[REDACTED]"


def is_sensitive_key(key: str) -> bool:
    """Check if a key should be considered sensitive and redacted.

    Args:
        key: The key name or dotted field path to check

    Returns:
        True if the key should be redacted, False otherwise
    """
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)
