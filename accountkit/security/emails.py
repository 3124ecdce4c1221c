"""Email address syntax validation."""

from __future__ import annotations

from typing import Callable

from email_validator import EmailNotValidError, validate_email

from ..domain.errors import ValidationError

EmailValidator = Callable[[str], list[str]]


def default_email_validator(email: str) -> list[str]:
    """Check the raw address syntax (no DNS lookups, no display names)."""
    try:
        validate_email(email, check_deliverability=False, allow_display_name=False)
    except EmailNotValidError as exc:
        return [str(exc)]
    return []


class EmailPolicy:
    """Wraps a pluggable email validator behind a single check."""

    def __init__(self, validator: EmailValidator | None = None) -> None:
        self._validator = validator or default_email_validator

    def validate(self, email: str) -> list[str]:
        return list(self._validator(email))

    def check_email(self, email: str) -> None:
        if self.validate(email):
            raise ValidationError(["Invalid email."])
