import logging

from passwordless.domain.context import Context
from passwordless.domain.errors import NotValidForContext
from passwordless.domain.ports.strategy import StrategyPort
from passwordless.domain.ports.token_store import TokenStorePort

logger = logging.getLogger(__name__)


async def request_token(
    store: TokenStorePort,
    strategy: StrategyPort,
    uid: str,
    recipient: str,
    ctx: Context = None,
) -> None:
    """
    Generate a token, deliver it, then store it, in that order.

    Errors from each stage propagate unchanged. If delivery fails nothing is
    stored, so the caller can simply retry and get a fresh token.
    """
    if not strategy.valid(ctx):
        raise NotValidForContext()

    token = strategy.generate(ctx)
    await strategy.send(ctx, token, uid, recipient)
    await store.store(token, uid, strategy.ttl(ctx))
    logger.info("token issued", extra={"uid": uid})
