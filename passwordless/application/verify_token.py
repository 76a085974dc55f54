import logging

from passwordless.domain.errors import TokenNotConsumed, TokenNotFound
from passwordless.domain.ports.token_store import TokenStorePort

logger = logging.getLogger(__name__)


async def verify_token(store: TokenStorePort, uid: str, token: str) -> bool:
    """
    Check token against the one stored for uid and consume it on success.

    TokenNotFound / TokenExpired from the store propagate; a wrong token is
    just False. The token is deleted only while the row still holds it: if
    another verification consumed it first, or a new token replaced it, this
    call raises TokenNotFound. If the token matched but could not be deleted,
    raise TokenNotConsumed: the user is authenticated, but the token may still
    be replayable until it expires.
    """
    if not await store.verify(token, uid):
        logger.info("token mismatch", extra={"uid": uid})
        return False

    try:
        consumed = await store.delete(uid, token)
    except Exception as e:
        logger.error("verified token could not be deleted", extra={"uid": uid})
        raise TokenNotConsumed(uid) from e

    if not consumed:
        logger.warning("token already consumed or replaced", extra={"uid": uid})
        raise TokenNotFound()

    logger.info("token verified", extra={"uid": uid})
    return True
