"""
api/routes/v1/auth.py -- Signup, activation, signin and password reset.

Routes:
  POST /api/v1/signup              -- email an activation link; writes nothing
  POST /api/v1/account-activation  -- create the account from the link token
  POST /api/v1/signin              -- password login; returns a session token
  POST /api/v1/forgot-password     -- store and email a reset token
  POST /api/v1/reset-password      -- set a new password with the reset token

All routes are public. Failures are raised by AccountService as AuthError
subclasses and rendered by the handler in api/main.py.

Security:
  [H2] signup, signin and forgot-password are rate-limited per IP.
  [M5] Cache-Control: no-store on signin responses.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import (
    ActivationRequest,
    ForgotPasswordRequest,
    MessageResponse,
    PublicUser,
    ResetPasswordRequest,
    SigninRequest,
    SigninResponse,
    SignupRequest,
)
from auth.service import AccountService
from core.config import get_settings

_settings = get_settings()

router = APIRouter()


def _accounts(request: Request) -> AccountService:
    return request.app.state.accounts


@limiter.limit(_settings.signup_rate_limit)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/signup", response_model=MessageResponse)
def signup(request: Request, body: SignupRequest) -> MessageResponse:
    """Send an activation email. No account exists until it is activated."""
    message = _accounts(request).signup(body.name, body.email, body.password)
    return MessageResponse(message=message)


@router.post("/account-activation", response_model=MessageResponse)
def account_activation(request: Request, body: ActivationRequest) -> MessageResponse:
    """Create the account encoded in an activation token."""
    return MessageResponse(message=_accounts(request).activate(body.token))


@limiter.limit(_settings.signin_rate_limit)  # [H2]
@router.post("/signin", response_model=SigninResponse)
def signin(request: Request, body: SigninRequest) -> JSONResponse:
    """Authenticate with email and password.

    Returns {token, user} where user is the public projection. The two failure
    cases (unknown email, wrong password) share the same error envelope.
    """
    token, user = _accounts(request).signin(body.email, body.password)
    resp = JSONResponse(
        status_code=200,
        content=SigninResponse(token=token, user=PublicUser.from_user(user)).model_dump(by_alias=True, mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@limiter.limit(_settings.signup_rate_limit)  # [H2] same budget as signup -- both send email
@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(request: Request, body: ForgotPasswordRequest) -> MessageResponse:
    """Store a fresh reset token on the account and email the link."""
    return MessageResponse(message=_accounts(request).forgot_password(body.email))


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(request: Request, body: ResetPasswordRequest) -> MessageResponse:
    """Replace the password if the token matches the one stored on the account."""
    message = _accounts(request).reset_password(body.reset_password_link, body.new_password)
    return MessageResponse(message=message)
