"""Domain-level contracts shared by the service and its store backends."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable

from .account import Account


@dataclass(slots=True)
class AccountRecord:
    """Full row projection of an account, including secrets held by the store."""

    account_id: str
    email: str
    password_hash: str
    created_at: datetime
    active: bool = True
    email_verified: bool = False
    password_reset_token: str | None = None
    password_reset_token_expiration: datetime | None = None
    email_verification_token: str | None = None
    email_verification_token_expiration: datetime | None = None

    def to_account(self) -> Account:
        """Strip the hash and token values, returning the caller-facing record."""
        return Account(
            account_id=self.account_id,
            email=self.email,
            created_at=self.created_at,
            active=self.active,
            email_verified=self.email_verified,
            password_reset_token_expiration=self.password_reset_token_expiration,
            email_verification_token_expiration=self.email_verification_token_expiration,
        )


@runtime_checkable
class AccountStore(Protocol):
    """Persistence contract the account service depends on.

    Implementations enforce per-email uniqueness and raise
    :class:`~accountkit.domain.errors.ConstraintViolation` when it is violated.
    Any other backend failure is raised as
    :class:`~accountkit.domain.errors.StorageError`. The two ``clear_*`` methods
    must compare and clear the token in a single atomic operation.
    """

    async def open(self) -> None: ...

    async def close(self) -> None: ...

    async def insert(self, email: str, password_hash: str) -> AccountRecord: ...

    async def find_by_email(self, email: str) -> AccountRecord | None: ...

    async def list_all(self) -> list[AccountRecord]: ...

    async def update_email(self, old_email: str, new_email: str) -> None: ...

    async def update_password_hash(self, email: str, password_hash: str) -> None: ...

    async def delete(self, email: str) -> None: ...

    async def set_password_reset_token(
        self, email: str, token: str, expiration: datetime
    ) -> None: ...

    async def get_password_reset_token(self, email: str) -> str | None: ...

    async def set_email_verification_token(
        self, email: str, token: str, expiration: datetime
    ) -> None: ...

    async def get_email_verification_token(self, email: str) -> str | None: ...

    async def clear_password_reset_and_set_password(
        self, email: str, password_hash: str, *, expected_token: str
    ) -> bool:
        """Clear the reset token and store ``password_hash`` if the token still matches."""
        ...

    async def clear_email_verification_and_mark_verified(
        self, email: str, *, expected_token: str
    ) -> bool:
        """Clear the verification token and flag the email verified if it still matches."""
        ...

    async def set_active(self, email: str, active: bool) -> None: ...
