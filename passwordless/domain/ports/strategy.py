from __future__ import annotations

from datetime import timedelta
from typing import Protocol

from passwordless.domain.context import Context


class StrategyPort(Protocol):
    """A named way of issuing tokens: generate, deliver, and for how long."""

    def valid(self, ctx: Context) -> bool:
        """Whether this strategy may be used for ctx."""

    def ttl(self, ctx: Context) -> timedelta:
        """How long an issued token stays valid."""

    def generate(self, ctx: Context) -> str: ...

    def sanitize(self, ctx: Context, value: str) -> str: ...

    async def send(self, ctx: Context, token: str, uid: str, recipient: str) -> None: ...
