from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class Account:
    """Public view of a stored user identity keyed by email.

    The password hash and raw token values never leave the store layer; only the
    token expirations are exposed so callers can enforce them.
    """

    account_id: str
    email: str
    created_at: datetime
    active: bool = True
    email_verified: bool = False
    password_reset_token_expiration: datetime | None = None
    email_verification_token_expiration: datetime | None = None
