from __future__ import annotations

from typing import Protocol

from passwordless.domain.context import Context


class TransportPort(Protocol):
    async def send(self, ctx: Context, token: str, uid: str, recipient: str) -> None:
        """
        Deliver the token to recipient.
        Either the message is fully handed off, or an exception is raised.
        """
