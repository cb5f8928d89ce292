"""Password strength and email format checks used at signup.

`validate_password_strength` is the pure rule set; `StrongPasswordValidator`
exposes the same rules to Django's `AUTH_PASSWORD_VALIDATORS` so the admin
and `createsuperuser` enforce them too.
"""

import re
from typing import NamedTuple

from django.core.exceptions import ValidationError

SPECIAL_CHARACTERS = "@$!%*?&"
MIN_PASSWORD_LENGTH = 8

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+\Z")


class PasswordCheck(NamedTuple):
    valid: bool
    reason: str | None = None


# Evaluated in order; the first failing rule decides the reason.
_RULES = (
    (lambda p: len(p) >= MIN_PASSWORD_LENGTH, "Password must be at least 8 characters long"),
    (lambda p: re.search(r"[A-Z]", p) is not None, "Password must contain at least one uppercase letter"),
    (lambda p: re.search(r"[a-z]", p) is not None, "Password must contain at least one lowercase letter"),
    (lambda p: re.search(r"[0-9]", p) is not None, "Password must contain at least one number"),
    (
        lambda p: any(ch in SPECIAL_CHARACTERS for ch in p),
        f"Password must contain at least one special character ({SPECIAL_CHARACTERS})",
    ),
)


def validate_password_strength(password: str | None) -> PasswordCheck:
    """Return the result of the first failing rule, or a valid check."""
    password = password or ""
    for rule, reason in _RULES:
        if not rule(password):
            return PasswordCheck(False, reason)
    return PasswordCheck(True)


def validate_email_format(email: str | None) -> bool:
    return bool(email) and EMAIL_RE.match(email) is not None


class StrongPasswordValidator:
    """Django password validator backed by `validate_password_strength`."""

    def validate(self, password, user=None):
        result = validate_password_strength(password)
        if not result.valid:
            raise ValidationError(result.reason, code="password_too_weak")

    def get_help_text(self):
        return (
            "Your password must be at least 8 characters long and contain an uppercase letter, "
            f"a lowercase letter, a number and one of {SPECIAL_CHARACTERS}."
        )
