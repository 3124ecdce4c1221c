"""Opaque single-use tokens for password reset and email verification."""

from __future__ import annotations

import uuid


def issue_token() -> str:
    """Return a fresh random UUID4 string (36 characters, 122 random bits)."""
    return str(uuid.uuid4())
