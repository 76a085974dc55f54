from __future__ import annotations

from passlib.context import CryptContext

from passwordless.settings import get_settings


class TokenHasher:
    """
    bcrypt for tokens at rest. The cost (log2 rounds) is fixed per instance;
    hashes made with another cost still verify.
    """

    def __init__(self, rounds: int | None = None) -> None:
        if rounds is None:
            rounds = int(get_settings().bcrypt_rounds)
        self.rounds = rounds
        self._ctx = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    def hash(self, token: str) -> str:
        return self._ctx.hash(token)

    def verify(self, token: str, token_hash: str) -> bool:
        """Constant-time check of token against a stored hash."""
        return self._ctx.verify(token, token_hash)
