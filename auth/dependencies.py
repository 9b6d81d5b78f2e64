"""
auth/dependencies.py -- FastAPI Depends() gates for protected routes.

require_signin() is the session gate: it reads "Authorization: Bearer <token>",
verifies it with the session secret and stores the claims on
request.state.auth. Any failure is a plain 401.

require_admin() chains on require_signin(), loads the record for the session
user and rejects anyone whose role is not admin. The loaded record is stored
on request.state.profile for downstream handlers and returned.

Layer rule: no imports from api/ or mail/.
  auth/dependencies.py may import from fastapi (for Depends/HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from auth.errors import AccessDeniedError, UserNotFoundError
from auth.models import ROLE_ADMIN, SessionClaims, TokenFailure, User
from auth.store import UserStore
from auth.tokens import decode_session_token


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_signin(request: Request) -> SessionClaims:
    """Require a valid session token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(claims: SessionClaims = Depends(require_signin)): ...
    """
    token = _bearer_token(request)
    claims = decode_session_token(token) if token else TokenFailure("missing")
    if isinstance(claims, TokenFailure):
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    request.state.auth = claims
    return claims


def require_admin(request: Request, claims: SessionClaims = Depends(require_signin)) -> User:
    """Require the session user to hold the admin role.

    Both failures are 400s with distinct codes: the session is valid, the
    resource is simply not available to this account.
    """
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(claims.user_id)
    if user is None:
        raise UserNotFoundError("User not found")
    if user.role != ROLE_ADMIN:
        raise AccessDeniedError("Admin resource. Access denied.")
    request.state.profile = user
    return user
