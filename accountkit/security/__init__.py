"""Password, email and token primitives used by the account service."""

from .emails import EmailPolicy, default_email_validator
from .passwords import PasswordPolicy, default_password_validator
from .tokens import issue_token

__all__ = [
    "EmailPolicy",
    "PasswordPolicy",
    "default_email_validator",
    "default_password_validator",
    "issue_token",
]
