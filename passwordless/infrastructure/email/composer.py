from __future__ import annotations

from dataclasses import dataclass, field
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Callable
from urllib.parse import urlencode

from passwordless.domain.context import Context

SIGNIN_PATH = "/account/token"


def signin_url(base_url: str, strategy: str, token: str, uid: str) -> str:
    query = urlencode({"strategy": strategy, "token": token, "uid": uid})
    return f"{base_url.rstrip('/')}{SIGNIN_PATH}?{query}"


@dataclass
class Email:
    subject: str
    to: str
    # (content type, body), from least- to most-preferred
    bodies: list[tuple[str, str]] = field(default_factory=list)

    def add_body(self, content_type: str, body: str) -> None:
        self.bodies.append((content_type, body))

    def to_mime(self, sender: str) -> MIMEMultipart:
        if not self.bodies:
            raise ValueError("email has no body")
        msg = MIMEMultipart("alternative")
        msg["Subject"] = self.subject
        msg["From"] = sender
        msg["To"] = self.to
        for content_type, body in self.bodies:
            _, _, subtype = content_type.partition("/")
            msg.attach(MIMEText(body, subtype or "plain", "utf-8"))
        return msg

    def body(self, content_type: str) -> str | None:
        for ct, body in self.bodies:
            if ct == content_type:
                return body
        return None


# (ctx, token, uid, recipient) -> Email
Composer = Callable[[Context, str, str, str], Email]


class SignInEmailComposer:
    """Renders the sign-in mail: the short code plus a one-click link."""

    def __init__(
        self, base_url: str, strategy: str = "email", site_name: str = "Passwordless"
    ) -> None:
        self.base_url = base_url
        self.strategy = strategy
        self.site_name = site_name

    def __call__(self, ctx: Context, token: str, uid: str, recipient: str) -> Email:
        link = signin_url(self.base_url, self.strategy, token, uid)
        email = Email(subject=f"{self.site_name} sign-in", to=recipient)

        text = (
            f"You (or someone who knows your email address) wants to sign in "
            f"to {self.site_name}.\n\n"
            f"Your code is {token} - or use the following link: {link}\n\n"
            "(If you did not request or were not expecting this email, "
            "you can safely ignore it.)"
        )
        html = (
            "<!doctype html><html><body>"
            f"<p>You (or someone who knows your email address) wants to sign in "
            f"to {escape(self.site_name)}.</p>"
            f"<p>Your code is <b>{escape(token)}</b> - or "
            f'<a href="{escape(link)}">click here</a> to sign in automatically.</p>'
            "<p>(If you did not request or were not expecting this email, "
            "you can safely ignore it.)</p>"
            "</body></html>"
        )

        email.add_body("text/plain", text)
        email.add_body("text/html", html)
        return email
