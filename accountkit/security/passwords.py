"""Password strength rules and bcrypt hashing."""

from __future__ import annotations

from typing import Callable

import bcrypt

from ..domain.errors import ValidationError

PasswordValidator = Callable[[str], list[str]]

MIN_LENGTH = 8
# bcrypt only looks at the first 72 bytes and newer releases reject longer input.
MAX_BYTES = 72
DEFAULT_ROUNDS = 10


def default_password_validator(password: str) -> list[str]:
    """Return one message per strength rule the password breaks."""
    violations: list[str] = []
    if len(password) < MIN_LENGTH:
        violations.append(f"Password must be at least {MIN_LENGTH} characters long.")
    if len(password.encode("utf-8")) > MAX_BYTES:
        violations.append(f"Password must be at most {MAX_BYTES} bytes long.")
    if not any(char.islower() for char in password):
        violations.append("Password must contain a lowercase letter.")
    if not any(char.isupper() for char in password):
        violations.append("Password must contain an uppercase letter.")
    if not any(char.isdigit() for char in password):
        violations.append("Password must contain a digit.")
    if all(char.isalnum() for char in password):
        violations.append("Password must contain a symbol.")
    return violations


class PasswordPolicy:
    """Pluggable strength validation plus salted hashing."""

    def __init__(
        self,
        validator: PasswordValidator | None = None,
        *,
        rounds: int = DEFAULT_ROUNDS,
    ) -> None:
        self._validator = validator or default_password_validator
        self._rounds = rounds

    def validate(self, password: str) -> list[str]:
        return list(self._validator(password))

    def check_password(self, password: str) -> None:
        """Raise :class:`ValidationError` listing every violated rule, if any."""
        violations = self.validate(password)
        if violations:
            raise ValidationError(violations)

    def hash(self, password: str) -> str:
        """Return a bcrypt hash of ``password`` using a fresh salt."""
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        """Return ``True`` when ``password`` matches ``hashed``."""
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # malformed hash or oversized password
            return False
