"""
api/routes/v1/users.py -- Profile endpoints behind the session and admin gates.

Routes:
  GET /api/v1/user/{user_id}  -- public projection of any account (requires signin)
  PUT /api/v1/user/update     -- update own name/password (requires signin)
  PUT /api/v1/admin/update    -- same, admin accounts only (requires admin)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import ProfileUpdate, PublicUser
from auth.dependencies import require_admin, require_signin
from auth.models import SessionClaims, User
from auth.service import AccountService

# Auth policy:
# - GET /api/v1/user/{user_id}:  requires signin (require_signin)
# - PUT /api/v1/user/update:     requires signin (require_signin)
# - PUT /api/v1/admin/update:    requires admin  (require_admin)
router = APIRouter()


@router.get("/user/{user_id}", response_model=PublicUser)
def read_user(
    request: Request,
    user_id: int,
    claims: SessionClaims = Depends(require_signin),
) -> PublicUser:
    accounts: AccountService = request.app.state.accounts
    return PublicUser.from_user(accounts.get_user(user_id))


@router.put("/user/update", response_model=PublicUser)
def update_user(
    request: Request,
    body: ProfileUpdate,
    claims: SessionClaims = Depends(require_signin),
) -> PublicUser:
    """Update the caller's own record; the target is always the session user."""
    accounts: AccountService = request.app.state.accounts
    updated = accounts.update_profile(claims.user_id, body.name, body.password)
    return PublicUser.from_user(updated)


@router.put("/admin/update", response_model=PublicUser)
def update_admin(
    request: Request,
    body: ProfileUpdate,
    admin: User = Depends(require_admin),
) -> PublicUser:
    """Admin counterpart of /user/update, applied to request.state.profile."""
    accounts: AccountService = request.app.state.accounts
    updated = accounts.update_profile(admin.id, body.name, body.password)
    return PublicUser.from_user(updated)
