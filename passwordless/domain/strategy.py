from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Optional

from passwordless.domain.context import Context
from passwordless.domain.ports.generator import TokenGeneratorPort
from passwordless.domain.ports.strategy import StrategyPort
from passwordless.domain.ports.transport import TransportPort

ValidityCheck = Callable[[Context], bool]


@dataclass(frozen=True)
class BaseStrategy:
    """
    TTL and validity shared by all strategies.

    Subclasses provide generate/sanitize/send. `valid_for` is an optional
    predicate over the request context; without one the strategy is always
    usable.
    """

    token_ttl: timedelta = timedelta(minutes=30)
    valid_for: Optional[ValidityCheck] = field(default=None, compare=False)

    def valid(self, ctx: Context) -> bool:
        if self.valid_for is None:
            return True
        return bool(self.valid_for(ctx))

    def ttl(self, ctx: Context) -> timedelta:
        return self.token_ttl


@dataclass(frozen=True)
class SimpleStrategy(BaseStrategy, StrategyPort):
    """A strategy made of one generator and one transport."""

    generator: Optional[TokenGeneratorPort] = None
    transport: Optional[TransportPort] = None

    def __post_init__(self) -> None:
        if self.generator is None or self.transport is None:
            raise ValueError("SimpleStrategy needs a generator and a transport")

    def generate(self, ctx: Context) -> str:
        return self.generator.generate(ctx)

    def sanitize(self, ctx: Context, value: str) -> str:
        return self.generator.sanitize(ctx, value)

    async def send(self, ctx: Context, token: str, uid: str, recipient: str) -> None:
        await self.transport.send(ctx, token, uid, recipient)

    async def aclose(self) -> None:
        """Release the transport's resources, if it holds any."""
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()
