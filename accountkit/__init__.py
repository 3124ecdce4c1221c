"""Drop-in account storage: creation, authentication, reset and verification flows."""

from .bootstrap import build_account_service, open_account_service
from .config import Settings, get_settings
from .domain.account import Account
from .domain.contracts import AccountRecord, AccountStore
from .domain.errors import (
    AccountError,
    AuthError,
    ConstraintViolation,
    NotFoundError,
    StorageError,
    TokenError,
    ValidationError,
)
from .domain.service import AccountService
from .repository import AccountRepository
from .security import EmailPolicy, PasswordPolicy, issue_token

__all__ = [
    "Account",
    "AccountError",
    "AccountRecord",
    "AccountRepository",
    "AccountService",
    "AccountStore",
    "AuthError",
    "ConstraintViolation",
    "EmailPolicy",
    "NotFoundError",
    "PasswordPolicy",
    "Settings",
    "StorageError",
    "TokenError",
    "ValidationError",
    "build_account_service",
    "get_settings",
    "issue_token",
    "open_account_service",
]
