"""Wiring that assembles a Postgres-backed account service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from .config import Settings, get_settings
from .domain.service import AccountService
from .repository import AccountRepository, create_pool
from .security.emails import EmailPolicy, EmailValidator
from .security.passwords import PasswordPolicy, PasswordValidator


def build_account_service(
    settings: Settings | None = None,
    *,
    password_validator: PasswordValidator | None = None,
    email_validator: EmailValidator | None = None,
) -> tuple[AccountService, AccountRepository]:
    """Create an unopened service and the repository it talks to."""
    settings = settings or get_settings()
    repository = AccountRepository(
        create_pool(settings),
        table_name=settings.table_name,
        timeout=settings.store_timeout_seconds,
    )
    service = AccountService(
        repository,
        password_policy=PasswordPolicy(password_validator, rounds=settings.bcrypt_rounds),
        email_policy=EmailPolicy(email_validator),
        verbose=settings.verbose,
    )
    return service, repository


@asynccontextmanager
async def open_account_service(
    settings: Settings | None = None,
    *,
    password_validator: PasswordValidator | None = None,
    email_validator: EmailValidator | None = None,
    create_schema: bool = True,
) -> AsyncIterator[AccountService]:
    """Open the Postgres pool, yield a ready service, and close the pool on exit."""
    service, repository = build_account_service(
        settings,
        password_validator=password_validator,
        email_validator=email_validator,
    )
    await service.init()
    try:
        if create_schema:
            await repository.ensure_schema()
        yield service
    finally:
        await service.close()
