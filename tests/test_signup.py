"""
tests/test_signup.py -- Integration tests for signup and account activation.

Coverage:
  - Signup emails an activation link and writes no record
  - Duplicate email stops signup before any email is sent
  - Email provider failure -> 502
  - Request validation -> 422, including passwords over bcrypt's byte limit
  - Name and email are trimmed, the password is kept as sent
  - Activation creates the account; expired/forged tokens -> 401, no record
  - Missing token -> "Token is not found" message
  - Immediate double signup: regression baseline for the uniqueness race
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from conftest import extract_token
from jose import jwt

from auth.models import ROLE_USER
from auth.tokens import create_activation_token, create_reset_token
from core.config import get_settings

SIGNUP = {"name": "Ada", "email": "ada@example.com", "password": "pw1234"}


def _signup(client, body=SIGNUP):
    return client.post("/api/v1/signup", json=body)


class TestSignup:
    def test_sends_activation_email_and_writes_nothing(self, api_client) -> None:
        client, store, mailer = api_client
        resp = _signup(client)
        assert resp.status_code == 200, resp.text
        assert resp.json() == {
            "message": "An email has been sent to ada@example.com. Follow the instruction to activate your account"
        }
        assert store.count_users() == 0
        assert len(mailer.sent) == 1
        message = mailer.sent[0]
        assert message.to == "ada@example.com"
        assert message.subject == "Account activation link"
        assert f"{get_settings().client_url}/auth/activate/" in message.html

    def test_duplicate_email_rejected_without_email(self, api_client) -> None:
        client, store, mailer = api_client
        store.create_user("Ada", "ada@example.com", "pw1234")
        resp = _signup(client)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "email_taken"
        assert mailer.sent == []

    def test_email_failure_is_502(self, api_client) -> None:
        client, store, mailer = api_client
        mailer.fail = True
        resp = _signup(client)
        assert resp.status_code == 502
        assert resp.json()["error"]["code"] == "email_failed"
        assert store.count_users() == 0

    def test_short_password_422(self, api_client) -> None:
        client, _store, mailer = api_client
        resp = _signup(client, {**SIGNUP, "password": "123"})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"
        assert mailer.sent == []

    def test_invalid_email_422(self, api_client) -> None:
        client, _store, _mailer = api_client
        assert _signup(client, {**SIGNUP, "email": "not-an-email"}).status_code == 422

    def test_blank_name_422(self, api_client) -> None:
        client, _store, _mailer = api_client
        assert _signup(client, {**SIGNUP, "name": "   "}).status_code == 422

    def test_multibyte_password_over_72_bytes_422(self, api_client) -> None:
        client, _store, mailer = api_client
        resp = _signup(client, {**SIGNUP, "password": "\u00e9" * 40})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"
        assert mailer.sent == []

    def test_trims_name_and_email_but_not_password(self, api_client) -> None:
        client, store, mailer = api_client
        resp = _signup(client, {"name": "  Ada ", "email": " ada@example.com ", "password": " pw1234 "})
        assert resp.status_code == 200, resp.text
        assert mailer.sent[0].to == "ada@example.com"

        client.post("/api/v1/account-activation", json={"token": extract_token(mailer.sent[0])})
        user = store.get_by_email("ada@example.com")
        assert user.name == "Ada"
        assert store.authenticate(user, " pw1234 ")
        assert not store.authenticate(user, "pw1234")


class TestActivation:
    def test_activation_creates_user(self, api_client) -> None:
        client, store, mailer = api_client
        _signup(client)
        token = extract_token(mailer.sent[0])

        resp = client.post("/api/v1/account-activation", json={"token": token})
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"message": "Sign up success!"}

        user = store.get_by_email("ada@example.com")
        assert user is not None
        assert user.name == "Ada"
        assert user.role == ROLE_USER
        assert store.authenticate(user, "pw1234")

    def test_expired_token_401_no_record(self, api_client) -> None:
        client, store, _mailer = api_client
        token = jwt.encode(
            {**SIGNUP, "exp": datetime.now(timezone.utc) - timedelta(seconds=1)},
            get_settings().jwt_account_activation,
            algorithm="HS256",
        )
        resp = client.post("/api/v1/account-activation", json={"token": token})
        assert resp.status_code == 401
        assert resp.json()["error"] == {
            "code": "expired_link",
            "message": "Expired link. Please sign up again",
            "detail": None,
        }
        assert store.count_users() == 0

    def test_token_signed_with_other_secret_401(self, api_client) -> None:
        client, store, _mailer = api_client
        forged = jwt.encode(SIGNUP, get_settings().jwt_secret, algorithm="HS256")
        resp = client.post("/api/v1/account-activation", json={"token": forged})
        assert resp.status_code == 401
        assert store.count_users() == 0

    def test_reset_token_cannot_activate(self, api_client) -> None:
        client, store, _mailer = api_client
        resp = client.post("/api/v1/account-activation", json={"token": create_reset_token(1, "Ada")})
        assert resp.status_code == 401
        assert store.count_users() == 0

    def test_oversized_password_in_token(self, api_client) -> None:
        client, store, _mailer = api_client
        token = create_activation_token("Ada", "ada@example.com", "\u00e9" * 40)
        resp = client.post("/api/v1/account-activation", json={"token": token})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "password_too_long"
        assert store.count_users() == 0

    def test_missing_token(self, api_client) -> None:
        client, _store, _mailer = api_client
        resp = client.post("/api/v1/account-activation", json={})
        assert resp.status_code == 200
        assert resp.json() == {"message": "Token is not found"}

    def test_second_activation_of_same_link_fails(self, api_client) -> None:
        client, store, mailer = api_client
        _signup(client)
        token = extract_token(mailer.sent[0])
        assert client.post("/api/v1/account-activation", json={"token": token}).status_code == 200
        resp = client.post("/api/v1/account-activation", json={"token": token})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "database_error"
        assert store.count_users() == 1


class TestDoubleSignupBaseline:
    """Signup writes nothing, so two immediate signups both pass the email check.

    Observed behavior (regression baseline): both calls return 200 and send an
    email; whichever activation lands first creates the account and the other
    fails with 401 database_error on the UNIQUE email constraint.
    """

    def test_both_signups_succeed_only_one_activation(self, api_client) -> None:
        client, store, mailer = api_client
        assert _signup(client, {**SIGNUP, "password": "pw1111"}).status_code == 200
        assert _signup(client, {**SIGNUP, "password": "pw2222"}).status_code == 200
        assert len(mailer.sent) == 2

        first, second = (extract_token(m) for m in mailer.sent)
        assert client.post("/api/v1/account-activation", json={"token": second}).status_code == 200
        resp = client.post("/api/v1/account-activation", json={"token": first})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "database_error"

        user = store.get_by_email("ada@example.com")
        assert store.authenticate(user, "pw2222")
        assert store.count_users() == 1

    def test_signup_after_activation_is_rejected(self, api_client) -> None:
        client, _store, mailer = api_client
        _signup(client)
        client.post("/api/v1/account-activation", json={"token": extract_token(mailer.sent[0])})
        resp = _signup(client)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "email_taken"
