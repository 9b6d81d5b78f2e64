"""
auth/passwords.py -- Salted password hashing.

bcrypt is used directly (no passlib wrapper). The salt is generated per user
and stored next to the hash, so a password change always rotates it.

Layer rule: stdlib + bcrypt only.
"""

from __future__ import annotations

import bcrypt

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72


class PasswordTooLongError(ValueError):
    """The UTF-8 encoding of a password exceeds bcrypt's input limit."""


def make_salt() -> str:
    """Return a fresh bcrypt salt (cost factor 12) as text."""
    return bcrypt.gensalt(rounds=12).decode("utf-8")


def hash_password(plain: str, salt: str) -> str:
    """Hash plain with the given salt.

    bcrypt rejects input longer than 72 bytes, so the limit is checked here on
    the encoded form. Characters outside ASCII take two to four bytes each.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise PasswordTooLongError(f"password is {len(encoded)} bytes, limit is {MAX_PASSWORD_BYTES}")
    return bcrypt.hashpw(encoded, salt.encode("utf-8")).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False
