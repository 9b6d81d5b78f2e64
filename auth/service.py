"""
auth/service.py -- Account operations: signup, activation, signin, password
reset and profile updates.

Every public method either returns its success value or raises an AuthError
subclass. No method writes an HTTP response; api/ does the mapping.

Flow notes:
  Signup writes nothing. The pending account lives inside the activation
  token, and the record is created only when that token comes back. Two
  signups for the same address therefore both pass the uniqueness check; the
  UNIQUE constraint rejects the second activation.

  The reset link stored on the record is a single-use latch: forgot_password()
  sets it, reset_password() clears it. Issuing a new reset token replaces the
  stored one, so earlier tokens stop working even before they expire.

Layer rule: no imports from api/. Email goes through the injected
EmailClient; nothing here reads configuration at import time.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from auth.errors import (
    BadCredentialsError,
    DatabaseError,
    EmailFailedError,
    EmailNotFoundError,
    EmailTakenError,
    ExpiredLinkError,
    InvalidFieldError,
    ResetTokenNotFoundError,
    UserNotFoundError,
)
from auth.models import TokenFailure, User
from auth.passwords import MAX_PASSWORD_BYTES, MIN_PASSWORD_LENGTH, PasswordTooLongError
from auth.store import UserStore
from auth.tokens import (
    create_activation_token,
    create_reset_token,
    create_session_token,
    decode_activation_token,
    decode_reset_token,
)
from core.config import Settings
from mail.client import EmailClient, EmailDeliveryError
from mail.templates import EmailMessage, activation_email, reset_email

logger = logging.getLogger("accountgate.auth.service")


class AccountService:
    def __init__(self, store: UserStore, mailer: EmailClient, settings: Settings) -> None:
        self.store = store
        self.mailer = mailer
        self.settings = settings

    # ------------------------------------------------------------------
    # Signup / activation
    # ------------------------------------------------------------------

    def signup(self, name: str, email: str, password: str) -> str:
        """Email an activation link carrying the pending account.

        Raises EmailTakenError before anything is signed or sent when the
        address already belongs to an account.
        """
        if self.store.get_by_email(email) is not None:
            raise EmailTakenError("The email is already taken")

        token = create_activation_token(name, email, password)
        self._deliver(activation_email(self.settings.email_from, email, self.settings.client_url, token))
        return f"An email has been sent to {email}. Follow the instruction to activate your account"

    def activate(self, token: str | None) -> str:
        if not token:
            return "Token is not found"

        claims = decode_activation_token(token)
        if isinstance(claims, TokenFailure):
            logger.info("Activation token rejected (%s)", claims.reason)
            raise ExpiredLinkError("Expired link. Please sign up again")

        try:
            user_id = self.store.create_user(claims.name, claims.email, claims.password)
        except PasswordTooLongError as exc:
            raise InvalidFieldError("password_too_long", _too_long_message()) from exc
        except SQLAlchemyError as exc:
            logger.warning("Saving user %s during activation failed: %s", claims.email, exc)
            raise DatabaseError(
                "Error saving user into the database. Please sign up again", status_code=401
            ) from exc
        logger.info("Activated account %s (%s)", user_id, claims.email)
        return "Sign up success!"

    # ------------------------------------------------------------------
    # Signin
    # ------------------------------------------------------------------

    def signin(self, email: str, password: str) -> tuple[str, User]:
        """Return (session token, user) for valid credentials."""
        user = self.store.get_by_email(email)
        if user is None:
            raise EmailNotFoundError("Email does not exist")
        if not self.store.authenticate(user, password):
            raise BadCredentialsError("Email/Password do not match")
        return create_session_token(user.id), user

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    def forgot_password(self, email: str) -> str:
        user = self.store.get_by_email(email)
        if user is None:
            raise UserNotFoundError("User with that email does not exist")

        token = create_reset_token(user.id, user.name)
        try:
            self.store.set_reset_link(user.id, token)
        except SQLAlchemyError as exc:
            logger.warning("Storing reset link for user %s failed: %s", user.id, exc)
            raise DatabaseError(
                "Database connection error on user password forgot request", status_code=400
            ) from exc

        self._deliver(reset_email(self.settings.email_from, email, self.settings.client_url, token))
        return f"Email has been sent to {email}. Follow the instruction to reset your password."

    def reset_password(self, token: str | None, new_password: str | None) -> str:
        if not token:
            return "Reset token is not found"
        _check_password(new_password)

        claims = decode_reset_token(token)
        if isinstance(claims, TokenFailure):
            logger.info("Reset token rejected (%s)", claims.reason)
            raise ExpiredLinkError("Expired link. Please reset password again")

        user = self.store.get_by_reset_link(token)
        if user is None or user.id != claims.user_id:
            raise ResetTokenNotFoundError("Could not find the token in the database")

        try:
            updated = self.store.reset_password(user.id, token, new_password)
        except SQLAlchemyError as exc:
            logger.warning("Password reset for user %s failed: %s", user.id, exc)
            raise DatabaseError("Fail to update the user password", status_code=401) from exc
        if not updated:
            # A concurrent reset consumed the link between lookup and update.
            raise ResetTokenNotFoundError("Could not find the token in the database")
        logger.info("Password reset for user %s", user.id)
        return "Your password has been updated!"

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def get_user(self, user_id: int) -> User:
        user = self.store.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError("User not found")
        return user

    def update_profile(self, user_id: int, name: str | None, password: str | None) -> User:
        """Change the caller's own name and/or password."""
        if name is not None and not name.strip():
            raise InvalidFieldError("name_required", "Name is required")
        if password is not None:
            _check_password(password)
        try:
            found = self.store.update_profile(user_id, name=name.strip() if name else None, password=password)
        except SQLAlchemyError as exc:
            logger.warning("Profile update for user %s failed: %s", user_id, exc)
            raise DatabaseError("User update failed") from exc
        if not found:
            raise UserNotFoundError("User not found")
        return self.get_user(user_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _deliver(self, message: EmailMessage) -> None:
        try:
            self.mailer.send(message)
        except EmailDeliveryError as exc:
            raise EmailFailedError(f"Could not send email to {message.to}: {exc}") from exc


def _too_long_message() -> str:
    return f"Password should be at most {MAX_PASSWORD_BYTES} bytes long"


def _check_password(password: str | None) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidFieldError(
            "password_too_short", f"Password should be min {MIN_PASSWORD_LENGTH} characters long"
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise InvalidFieldError("password_too_long", _too_long_message())
