"""
mail/client.py -- Email delivery backends.

EmailClient is the capability the account service depends on. Two backends:
  SendGridClient -- POSTs to the SendGrid v3 mail/send endpoint with requests.
  LogEmailClient -- writes the message to the log instead of sending it.
                    Used in development when no SENDGRID_API_KEY is set.

Delivery failures raise EmailDeliveryError. There is no retry: the caller
reports the failure to the client immediately.
"""

from __future__ import annotations

import logging
from typing import Protocol

import requests

from core.config import Settings
from mail.templates import EmailMessage

logger = logging.getLogger("accountgate.mail")

SENDGRID_API = "https://api.sendgrid.com/v3/mail/send"


class EmailDeliveryError(Exception):
    """The provider did not accept the message."""


class EmailClient(Protocol):
    def send(self, message: EmailMessage) -> None: ...


class SendGridClient:
    """Send through SendGrid's HTTP API.

    A requests.Session is kept per client for connection pooling. max_redirects
    is lowered from the requests default of 30 -- the endpoint is fixed.
    """

    def __init__(self, api_key: str, timeout: float = 10, session: requests.Session | None = None) -> None:
        if not api_key:
            raise ValueError("SendGridClient requires an API key")
        self._api_key = api_key
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.max_redirects = 3

    def send(self, message: EmailMessage) -> None:
        payload = {
            "personalizations": [{"to": [{"email": message.to}]}],
            "from": {"email": message.sender},
            "subject": message.subject,
            "content": [{"type": "text/html", "value": message.html}],
        }
        try:
            resp = self._session.post(
                SENDGRID_API,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("SendGrid delivery to %s failed: %s", message.to, exc)
            raise EmailDeliveryError(str(exc)) from exc
        logger.info("Sent '%s' to %s", message.subject, message.to)


class LogEmailClient:
    """Development backend: log the message body so links can be copied."""

    def send(self, message: EmailMessage) -> None:
        logger.info("[EMAIL] to=%s subject=%r\n%s", message.to, message.subject, message.html)


def build_email_client(settings: Settings) -> EmailClient:
    """Pick the backend for the configured environment.

    Production without SENDGRID_API_KEY is a startup error -- silently logging
    activation links in production would leak them to log storage.
    """
    if settings.sendgrid_api_key:
        return SendGridClient(settings.sendgrid_api_key)
    if settings.debug:
        logger.warning("SENDGRID_API_KEY not set -- emails will be written to the log")
        return LogEmailClient()
    raise ValueError("SENDGRID_API_KEY is required in production mode.")
