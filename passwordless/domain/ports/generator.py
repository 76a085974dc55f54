from __future__ import annotations

from typing import Protocol

from passwordless.domain.context import Context


class TokenGeneratorPort(Protocol):
    def generate(self, ctx: Context) -> str:
        """Return a fresh plaintext token."""

    def sanitize(self, ctx: Context, value: str) -> str:
        """Canonicalize a user-submitted token before it is compared."""
