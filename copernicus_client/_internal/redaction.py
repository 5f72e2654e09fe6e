"""Redaction of secrets in keyword arguments before they are logged."""

from typing import Any

REDACT_KEYS: frozenset[str] = frozenset({"password", "token", "secret", "credentials"})

REDACTED_VALUE = "[REDACTED]"


def redact_kwargs(kwargs: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of `kwargs` with sensitive values replaced.

    Keys are matched case-insensitively. The original dict is never mutated.
    """
    return {
        key: REDACTED_VALUE if key.lower() in REDACT_KEYS else value
        for key, value in kwargs.items()
    }
