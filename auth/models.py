"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores, the account
service and routes do the work.

Layer rule: no imports from api/ or mail/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass
class User:
    """A persisted account.

    hashed_password is a bcrypt hash produced with the per-user salt stored
    alongside it. reset_password_link holds the most recently issued reset
    token, or "" when no reset is pending.
    """

    name: str
    email: str
    id: int | None = None
    hashed_password: str | None = None
    salt: str | None = None
    role: str = ROLE_USER
    reset_password_link: str = ""
    created_at: str | None = None
    updated_at: str | None = None


# ---------------------------------------------------------------------------
# Verified token claims
#
# Token decoders return one of these or a TokenFailure -- callers branch on the
# type and never touch an unverified payload.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SessionClaims:
    user_id: int


@dataclass(frozen=True)
class SignupClaims:
    """Pending-account data carried by an activation token."""

    name: str
    email: str
    password: str


@dataclass(frozen=True)
class ResetClaims:
    user_id: int
    name: str


@dataclass(frozen=True)
class TokenFailure:
    reason: str  # "expired" or "invalid"
