"""Account service orchestrating validation, hashing, tokens and persistence."""

from __future__ import annotations

import asyncio
import logging
import secrets
from datetime import datetime

from .account import Account
from .contracts import AccountRecord, AccountStore
from .errors import AuthError, NotFoundError, TokenError
from ..security.emails import EmailPolicy
from ..security.passwords import PasswordPolicy
from ..security.tokens import issue_token

logger = logging.getLogger(__name__)


def _tokens_match(stored: str | None, supplied: str) -> bool:
    if stored is None:
        return False
    return secrets.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))


class AccountService:
    """Account lifecycle workflows on top of an :class:`AccountStore`.

    The service owns no mutable state of its own. The store handle is opened by
    :meth:`init` and released by :meth:`close`; using the service as an async
    context manager does both.
    """

    def __init__(
        self,
        store: AccountStore,
        *,
        password_policy: PasswordPolicy | None = None,
        email_policy: EmailPolicy | None = None,
        verbose: bool = False,
    ) -> None:
        """Store dependencies used to validate, hash and persist accounts."""
        self._store = store
        self._passwords = password_policy or PasswordPolicy()
        self._emails = email_policy or EmailPolicy()
        self._log_level = logging.INFO if verbose else logging.DEBUG

    def _log(self, message: str, *args: object) -> None:
        logger.log(self._log_level, message, *args)

    async def init(self) -> None:
        """Open the underlying store."""
        await self._store.open()
        self._log("account store opened")

    async def close(self) -> None:
        """Release the underlying store."""
        await self._store.close()
        self._log("account store closed")

    async def __aenter__(self) -> "AccountService":
        await self.init()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _hash(self, password: str) -> str:
        return await asyncio.to_thread(self._passwords.hash, password)

    async def _verify(self, password: str, hashed: str) -> bool:
        return await asyncio.to_thread(self._passwords.verify, password, hashed)

    async def _require(self, email: str) -> AccountRecord:
        record = await self._store.find_by_email(email)
        if record is None:
            raise NotFoundError(f"No account exists for {email!r}.")
        return record

    async def create_user(self, email: str, password: str) -> Account:
        """Validate and store a new active, unverified account."""
        self._passwords.check_password(password)
        self._emails.check_email(email)
        password_hash = await self._hash(password)
        record = await self._store.insert(email, password_hash)
        self._log("created account %s for %s", record.account_id, email)
        return record.to_account()

    async def authenticate_user(self, email: str, password: str) -> Account:
        """Return the account when ``password`` matches its stored hash.

        The ``active`` flag is not consulted; callers that want to refuse
        deactivated accounts check :attr:`Account.active` on the result.
        """
        record = await self._require(email)
        if not await self._verify(password, record.password_hash):
            logger.info("authentication failed for %s", email)
            raise AuthError()
        return record.to_account()

    async def get_user(self, email: str) -> Account:
        record = await self._require(email)
        return record.to_account()

    async def get_all_users(self) -> list[Account]:
        records = await self._store.list_all()
        return [record.to_account() for record in records]

    async def update_user_email(self, old_email: str, new_email: str) -> None:
        self._emails.check_email(new_email)
        await self._store.update_email(old_email, new_email)
        self._log("changed account email %s -> %s", old_email, new_email)

    async def update_user_password(self, email: str, password: str) -> None:
        self._passwords.check_password(password)
        password_hash = await self._hash(password)
        await self._store.update_password_hash(email, password_hash)
        self._log("updated password for %s", email)

    async def delete_user(self, email: str) -> None:
        """Remove the account; deleting an unknown email is a no-op."""
        await self._store.delete(email)
        self._log("deleted account %s", email)

    async def create_password_reset_token(self, email: str, expiration: datetime) -> str:
        """Issue a reset token, replacing any earlier one, and return it.

        ``expiration`` is stored alongside the token but redemption only checks
        token equality; enforcing it is left to the caller.
        """
        token = issue_token()
        await self._store.set_password_reset_token(email, token, expiration)
        self._log("issued password reset token for %s (expires %s)", email, expiration)
        return token

    async def reset_password_by_token(self, email: str, token: str, password: str) -> None:
        """Set a new password if ``token`` equals the stored reset token."""
        stored = await self._store.get_password_reset_token(email)
        if not _tokens_match(stored, token):
            self._log("rejected password reset token for %s", email)
            raise TokenError()
        self._passwords.check_password(password)
        password_hash = await self._hash(password)
        changed = await self._store.clear_password_reset_and_set_password(
            email, password_hash, expected_token=token
        )
        if not changed:
            # redeemed or superseded between the read and the write
            self._log("password reset token for %s consumed concurrently", email)
            raise TokenError()
        self._log("password reset by token for %s", email)

    async def deactivate_account(self, email: str, password: str) -> None:
        await self.authenticate_user(email, password)
        await self._store.set_active(email, False)
        self._log("deactivated account %s", email)

    async def reactivate_account(self, email: str, password: str) -> None:
        await self.authenticate_user(email, password)
        await self._store.set_active(email, True)
        self._log("reactivated account %s", email)

    async def create_email_verification_token(self, email: str, expiration: datetime) -> str:
        """Issue an email verification token, replacing any earlier one, and return it."""
        token = issue_token()
        await self._store.set_email_verification_token(email, token, expiration)
        self._log("issued email verification token for %s (expires %s)", email, expiration)
        return token

    async def verify_email_by_token(self, email: str, token: str) -> None:
        """Mark the email verified if ``token`` equals the stored verification token."""
        stored = await self._store.get_email_verification_token(email)
        if not _tokens_match(stored, token):
            self._log("rejected email verification token for %s", email)
            raise TokenError()
        changed = await self._store.clear_email_verification_and_mark_verified(
            email, expected_token=token
        )
        if not changed:
            self._log("email verification token for %s consumed concurrently", email)
            raise TokenError()
        self._log("verified email %s", email)
