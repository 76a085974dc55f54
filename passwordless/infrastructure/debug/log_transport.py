from __future__ import annotations

import logging
from typing import Callable

from passwordless.domain.context import Context
from passwordless.domain.ports.transport import TransportPort

logger = logging.getLogger("passwordless.transport.debug")

# (token, uid) -> message
MessageFunc = Callable[[str, str], str]


def _default_message(token: str, uid: str) -> str:
    return f"token for {uid}: {token}"


class LogTransport(TransportPort):
    """
    Development transport: logs the message (usually a sign-in URL) instead
    of delivering it. Prints the plaintext token, so never use it in prod.
    """

    def __init__(self, message_func: MessageFunc = _default_message) -> None:
        self._message_func = message_func

    async def send(self, ctx: Context, token: str, uid: str, recipient: str) -> None:
        logger.info(
            self._message_func(token, uid),
            extra={"uid": uid, "recipient": recipient},
        )
