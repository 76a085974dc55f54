from __future__ import annotations

import logging
import threading
from datetime import timedelta
from types import MappingProxyType
from typing import Mapping, Optional

from passwordless.application import request_token as request_token_usecase
from passwordless.application import verify_token as verify_token_usecase
from passwordless.domain.context import Context
from passwordless.domain.errors import UnknownStrategy
from passwordless.domain.ports.generator import TokenGeneratorPort
from passwordless.domain.ports.strategy import StrategyPort
from passwordless.domain.ports.token_store import TokenStorePort
from passwordless.domain.ports.transport import TransportPort
from passwordless.domain.strategy import SimpleStrategy, ValidityCheck

logger = logging.getLogger(__name__)


class Passwordless:
    """
    Named strategies bound to one token store.

    Create one per application and share it. Lookups never block: writers
    build a new mapping under a lock and swap the reference, so a reader
    always sees either the old or the new set of strategies.
    """

    def __init__(self, store: TokenStorePort) -> None:
        self.store = store
        self._lock = threading.Lock()
        self._strategies: Mapping[str, StrategyPort] = MappingProxyType({})

    def set_strategy(self, name: str, strategy: StrategyPort) -> None:
        with self._lock:
            updated = dict(self._strategies)
            updated[name] = strategy
            self._strategies = MappingProxyType(updated)
        logger.info("strategy registered", extra={"strategy": name})

    def set_transport(
        self,
        name: str,
        transport: TransportPort,
        generator: TokenGeneratorPort,
        ttl: timedelta,
        *,
        valid: Optional[ValidityCheck] = None,
    ) -> SimpleStrategy:
        strategy = SimpleStrategy(
            token_ttl=ttl, valid_for=valid, generator=generator, transport=transport
        )
        self.set_strategy(name, strategy)
        return strategy

    def get_strategy(self, name: str) -> StrategyPort:
        try:
            return self._strategies[name]
        except KeyError:
            raise UnknownStrategy(name) from None

    def list_strategies(self, ctx: Context = None) -> dict[str, StrategyPort]:
        """
        Snapshot of the registered strategies. With a ctx, only those valid
        for it are returned.
        """
        strategies = self._strategies
        if ctx is None:
            return dict(strategies)
        return {name: s for name, s in strategies.items() if s.valid(ctx)}

    async def request_token(
        self, name: str, uid: str, recipient: str, ctx: Context = None
    ) -> None:
        strategy = self.get_strategy(name)
        await request_token_usecase.request_token(
            self.store, strategy, uid, recipient, ctx
        )

    async def verify_token(
        self,
        uid: str,
        token: str,
        *,
        strategy: Optional[str] = None,
        ctx: Context = None,
    ) -> bool:
        """
        Verify and consume the token for uid.

        Pass the name of the strategy that issued the token to canonicalize
        user input (case, separators, look-alike characters) first.
        """
        if strategy is not None:
            token = self.get_strategy(strategy).sanitize(ctx, token)
        return await verify_token_usecase.verify_token(self.store, uid, token)

    async def aclose(self) -> None:
        """
        Release resources held by the registered strategies (e.g. HTTP
        clients). Call once at shutdown; the token store is left alone.
        """
        for name, strategy in self._strategies.items():
            close = getattr(strategy, "aclose", None)
            if close is not None:
                await close()
                logger.debug("strategy closed", extra={"strategy": name})
