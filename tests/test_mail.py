"""
tests/test_mail.py -- Unit tests for mail/client.py and mail/templates.py.

The SendGrid client is exercised against a MagicMock session; no network.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from core.config import get_settings
from mail.client import SENDGRID_API, EmailDeliveryError, LogEmailClient, SendGridClient, build_email_client
from mail.templates import activation_email, activation_link, reset_email, reset_link


def _message():
    return activation_email("noreply@example.com", "ada@example.com", "https://app.example.com", "tok.en.value")


class TestTemplates:
    def test_activation_link(self) -> None:
        assert activation_link("https://app.example.com/", "abc") == "https://app.example.com/auth/activate/abc"

    def test_reset_link(self) -> None:
        assert reset_link("https://app.example.com", "abc") == "https://app.example.com/auth/password/reset/abc"

    def test_activation_email(self) -> None:
        msg = _message()
        assert msg.sender == "noreply@example.com"
        assert msg.to == "ada@example.com"
        assert msg.subject == "Account activation link"
        assert "https://app.example.com/auth/activate/tok.en.value" in msg.html

    def test_reset_email(self) -> None:
        msg = reset_email("noreply@example.com", "ada@example.com", "https://app.example.com", "t1")
        assert msg.subject == "Password Reset link"
        assert "https://app.example.com/auth/password/reset/t1" in msg.html


class TestSendGridClient:
    def test_posts_v3_payload(self) -> None:
        session = MagicMock()
        client = SendGridClient("SG.test-key", session=session)
        client.send(_message())

        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        assert args[0] == SENDGRID_API
        assert kwargs["headers"] == {"Authorization": "Bearer SG.test-key"}
        payload = kwargs["json"]
        assert payload["personalizations"] == [{"to": [{"email": "ada@example.com"}]}]
        assert payload["from"] == {"email": "noreply@example.com"}
        assert payload["subject"] == "Account activation link"
        assert payload["content"][0]["type"] == "text/html"
        assert kwargs["timeout"] == 10

    def test_http_error_raises_delivery_error(self) -> None:
        session = MagicMock()
        session.post.return_value.raise_for_status.side_effect = requests.HTTPError("401 Unauthorized")
        with pytest.raises(EmailDeliveryError):
            SendGridClient("SG.bad", session=session).send(_message())

    def test_network_error_raises_delivery_error(self) -> None:
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("down")
        with pytest.raises(EmailDeliveryError):
            SendGridClient("SG.key", session=session).send(_message())

    def test_requires_api_key(self) -> None:
        with pytest.raises(ValueError):
            SendGridClient("")


class TestBuildEmailClient:
    def test_sendgrid_when_key_set(self) -> None:
        settings = get_settings().model_copy(update={"sendgrid_api_key": "SG.key"})
        assert isinstance(build_email_client(settings), SendGridClient)

    def test_log_client_in_debug(self) -> None:
        settings = get_settings().model_copy(update={"sendgrid_api_key": "", "debug": True})
        assert isinstance(build_email_client(settings), LogEmailClient)

    def test_production_requires_key(self) -> None:
        settings = get_settings().model_copy(update={"sendgrid_api_key": "", "debug": False})
        with pytest.raises(ValueError):
            build_email_client(settings)

    def test_log_client_sends_nothing(self, caplog) -> None:
        caplog.set_level("INFO", logger="accountgate.mail")
        LogEmailClient().send(_message())
        assert "ada@example.com" in caplog.text
