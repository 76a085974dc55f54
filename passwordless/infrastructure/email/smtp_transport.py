from __future__ import annotations

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from typing import Optional

from passwordless.domain.context import Context
from passwordless.domain.errors import DeliveryFailed
from passwordless.domain.ports.transport import TransportPort
from passwordless.infrastructure.email.composer import Composer

logger = logging.getLogger(__name__)


class SmtpTransport(TransportPort):
    """Submits the sign-in mail over authenticated SMTP (STARTTLS by default)."""

    def __init__(
        self,
        host: str,
        sender: str,
        composer: Composer,
        *,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        starttls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._composer = composer
        self._username = username
        self._password = password
        self._starttls = starttls
        self._timeout = timeout

    async def send(self, ctx: Context, token: str, uid: str, recipient: str) -> None:
        msg = self._composer(ctx, token, uid, recipient).to_mime(self._sender)
        try:
            await asyncio.to_thread(self._submit, msg, recipient)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryFailed(f"SMTP error: {e}") from e
        logger.info("sign-in mail submitted", extra={"uid": uid, "smtp_host": self._host})

    def _submit(self, msg: MIMEMultipart, recipient: str) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
            if self._starttls:
                smtp.starttls()
            if self._username:
                smtp.login(self._username, self._password or "")
            smtp.sendmail(self._sender, [recipient], msg.as_string())
