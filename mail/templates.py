"""
mail/templates.py -- Activation and password-reset messages.

Links point at the client application, which reads the token from the path
and posts it back to the matching API endpoint.
"""

from __future__ import annotations

import html
from dataclasses import dataclass


@dataclass(frozen=True)
class EmailMessage:
    sender: str
    to: str
    subject: str
    html: str


def activation_link(client_url: str, token: str) -> str:
    return f"{client_url.rstrip('/')}/auth/activate/{token}"


def reset_link(client_url: str, token: str) -> str:
    return f"{client_url.rstrip('/')}/auth/password/reset/{token}"


def activation_email(sender: str, to: str, client_url: str, token: str) -> EmailMessage:
    link = html.escape(activation_link(client_url, token))
    return EmailMessage(
        sender=sender,
        to=to,
        subject="Account activation link",
        html=(
            "<h4>Please use the following link to activate your account:</h4>"
            f"<p>{link}</p>"
            "<hr />"
            "<p>This email may contain sensitive information</p>"
        ),
    )


def reset_email(sender: str, to: str, client_url: str, token: str) -> EmailMessage:
    link = html.escape(reset_link(client_url, token))
    return EmailMessage(
        sender=sender,
        to=to,
        subject="Password Reset link",
        html=(
            "<h1>Please use the following link to reset your password</h1>"
            f"<p>{link}</p>"
            "<hr />"
            "<p>This email may contain sensitive information</p>"
        ),
    )
