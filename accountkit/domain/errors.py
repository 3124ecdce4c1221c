"""Error taxonomy raised by account operations."""

from __future__ import annotations

from typing import Iterable


class AccountError(Exception):
    """Base class for every failure surfaced by the account service."""


class ValidationError(AccountError):
    """Input rejected by the password or email policy."""

    def __init__(self, violations: Iterable[str]) -> None:
        self.violations = [str(violation) for violation in violations]
        super().__init__("\n".join(self.violations))


class ConstraintViolation(AccountError):
    """The store refused a write because the email is already in use."""


class AuthError(AccountError):
    """Credentials did not match the stored hash."""

    def __init__(self, message: str = "Incorrect username or password.") -> None:
        super().__init__(message)


class TokenError(AccountError):
    """A reset or verification token did not match the stored one."""

    def __init__(self, message: str = "That token has expired or does not exist.") -> None:
        super().__init__(message)


class NotFoundError(AccountError):
    """No account exists for the requested email."""


class StorageError(AccountError):
    """The backing store failed to complete an operation."""
