"""
auth/tokens.py -- JWT issue and verification for the three token kinds.

Security design decisions:
  JWT: python-jose with HS256. Each token kind has its own secret [S2]:
       session    -- JWT_SECRET,             payload {_id},                7 days
       activation -- JWT_ACCOUNT_ACTIVATION, payload {name, email, password}, 10 min
       reset      -- JWT_RESET_PASSWORD,     payload {_id, name},          10 min

  Verification returns typed claims or a TokenFailure, never raises. A bad
  signature, an expired token and a payload with missing or mistyped claims
  are all failures, so no caller can act on unverified data.

  Secrets are sourced from core.config.get_settings() once at module load.

Layer rule: no imports from api/ or mail/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from auth.models import ResetClaims, SessionClaims, SignupClaims, TokenFailure
from core.config import get_settings

logger = logging.getLogger("accountgate.auth.tokens")

_settings = get_settings()

_ALGORITHM = "HS256"


# ---------------------------------------------------------------------------
# Shared encode / decode
# ---------------------------------------------------------------------------


def _encode(payload: dict, secret: str, expire_seconds: int) -> str:
    claims = dict(payload)
    # jti keeps two tokens issued in the same second for the same user distinct;
    # the stored reset link comparison relies on that.
    claims["jti"] = secrets.token_hex(8)
    claims["exp"] = datetime.now(timezone.utc) + timedelta(seconds=expire_seconds)
    return jwt.encode(claims, secret, algorithm=_ALGORITHM)


def _decode(token: str, secret: str) -> dict | TokenFailure:
    try:
        return jwt.decode(token, secret, algorithms=[_ALGORITHM])
    except ExpiredSignatureError:
        return TokenFailure("expired")
    except JWTError as exc:
        logger.debug("Rejected token: %s", exc)
        return TokenFailure("invalid")


def _user_id(payload: dict) -> int | None:
    value = payload.get("_id")
    # bool is an int subclass; a token carrying true is not a user id.
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


def create_session_token(user_id: int) -> str:
    """Sign a bearer token identifying user_id for protected routes."""
    return _encode({"_id": user_id}, _settings.jwt_secret, _settings.session_expire_seconds)


def decode_session_token(token: str) -> SessionClaims | TokenFailure:
    payload = _decode(token, _settings.jwt_secret)
    if isinstance(payload, TokenFailure):
        return payload
    user_id = _user_id(payload)
    if user_id is None:
        return TokenFailure("invalid")
    return SessionClaims(user_id=user_id)


# ---------------------------------------------------------------------------
# Activation tokens
# ---------------------------------------------------------------------------


def create_activation_token(name: str, email: str, password: str) -> str:
    """Encode pending signup data so no unconfirmed record has to be stored.

    The client holds the token until the activation link is followed.
    """
    return _encode(
        {"name": name, "email": email, "password": password},
        _settings.jwt_account_activation,
        _settings.activation_expire_seconds,
    )


def decode_activation_token(token: str) -> SignupClaims | TokenFailure:
    payload = _decode(token, _settings.jwt_account_activation)
    if isinstance(payload, TokenFailure):
        return payload
    fields = [payload.get(key) for key in ("name", "email", "password")]
    if not all(isinstance(value, str) and value for value in fields):
        return TokenFailure("invalid")
    name, email, password = fields
    return SignupClaims(name=name, email=email, password=password)


# ---------------------------------------------------------------------------
# Reset tokens
# ---------------------------------------------------------------------------


def create_reset_token(user_id: int, name: str) -> str:
    return _encode({"_id": user_id, "name": name}, _settings.jwt_reset_password, _settings.reset_expire_seconds)


def decode_reset_token(token: str) -> ResetClaims | TokenFailure:
    payload = _decode(token, _settings.jwt_reset_password)
    if isinstance(payload, TokenFailure):
        return payload
    user_id = _user_id(payload)
    name = payload.get("name")
    if user_id is None or not isinstance(name, str):
        return TokenFailure("invalid")
    return ResetClaims(user_id=user_id, name=name)
