from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import datetime, timezone

import pytest
import pytest_asyncio

from accountkit.domain.contracts import AccountRecord
from accountkit.domain.errors import ConstraintViolation
from accountkit.domain.service import AccountService
from accountkit.security.passwords import PasswordPolicy


class FakeAccountStore:
    """In-memory store mimicking the Postgres repository's behaviors."""

    def __init__(self) -> None:
        self._records: dict[str, AccountRecord] = {}
        self._ids = itertools.count(1)
        self.opened = False
        self.closed = False

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.closed = True

    async def insert(self, email: str, password_hash: str) -> AccountRecord:
        if email in self._records:
            raise ConstraintViolation(f"duplicate key value violates unique constraint: {email}")
        record = AccountRecord(
            account_id=str(next(self._ids)),
            email=email,
            password_hash=password_hash,
            created_at=datetime.now(timezone.utc),
        )
        self._records[email] = record
        return replace(record)

    async def find_by_email(self, email: str) -> AccountRecord | None:
        record = self._records.get(email)
        return replace(record) if record else None

    async def list_all(self) -> list[AccountRecord]:
        ordered = sorted(self._records.values(), key=lambda r: int(r.account_id))
        return [replace(record) for record in ordered]

    async def update_email(self, old_email: str, new_email: str) -> None:
        if old_email not in self._records:
            return
        if new_email in self._records and new_email != old_email:
            raise ConstraintViolation(f"duplicate key value violates unique constraint: {new_email}")
        record = self._records.pop(old_email)
        record.email = new_email
        self._records[new_email] = record

    async def update_password_hash(self, email: str, password_hash: str) -> None:
        if email in self._records:
            self._records[email].password_hash = password_hash

    async def delete(self, email: str) -> None:
        self._records.pop(email, None)

    async def set_password_reset_token(self, email: str, token: str, expiration: datetime) -> None:
        record = self._records.get(email)
        if record:
            record.password_reset_token = token
            record.password_reset_token_expiration = expiration

    async def get_password_reset_token(self, email: str) -> str | None:
        record = self._records.get(email)
        return record.password_reset_token if record else None

    async def set_email_verification_token(
        self, email: str, token: str, expiration: datetime
    ) -> None:
        record = self._records.get(email)
        if record:
            record.email_verification_token = token
            record.email_verification_token_expiration = expiration

    async def get_email_verification_token(self, email: str) -> str | None:
        record = self._records.get(email)
        return record.email_verification_token if record else None

    async def clear_password_reset_and_set_password(
        self, email: str, password_hash: str, *, expected_token: str
    ) -> bool:
        record = self._records.get(email)
        if record is None or record.password_reset_token != expected_token:
            return False
        record.password_reset_token = None
        record.password_reset_token_expiration = None
        record.password_hash = password_hash
        return True

    async def clear_email_verification_and_mark_verified(
        self, email: str, *, expected_token: str
    ) -> bool:
        record = self._records.get(email)
        if record is None or record.email_verification_token != expected_token:
            return False
        record.email_verification_token = None
        record.email_verification_token_expiration = None
        record.email_verified = True
        return True

    async def set_active(self, email: str, active: bool) -> None:
        if email in self._records:
            self._records[email].active = active

    def record(self, email: str) -> AccountRecord:
        """Test helper exposing the stored row, hash included."""
        return self._records[email]


@pytest.fixture
def store() -> FakeAccountStore:
    return FakeAccountStore()


@pytest.fixture
def password_policy() -> PasswordPolicy:
    # lowest bcrypt cost keeps the suite fast
    return PasswordPolicy(rounds=4)


@pytest_asyncio.fixture
async def service(store: FakeAccountStore, password_policy: PasswordPolicy):
    """Provide an opened account service over an isolated fake store."""
    async with AccountService(store, password_policy=password_policy) as svc:
        yield svc
