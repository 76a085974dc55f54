from __future__ import annotations

import secrets

from passwordless.domain.context import Context
from passwordless.domain.ports.generator import TokenGeneratorPort

# Crockford base32: digits and upper-case letters minus I, L, O and U, so a
# code can be read aloud and typed by hand.
CROCKFORD_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

_CROCKFORD_CONFUSABLES = str.maketrans({"I": "1", "L": "1", "O": "0"})
_SEPARATORS = str.maketrans("", "", " \t\r\n-")


def _check_length(length: int) -> int:
    if length < 1:
        raise ValueError("token length must be positive")
    return length


class CrockfordGenerator(TokenGeneratorPort):
    def __init__(self, length: int) -> None:
        self.length = _check_length(length)

    def generate(self, ctx: Context) -> str:
        return "".join(
            secrets.choice(CROCKFORD_ALPHABET) for _ in range(self.length)
        )

    def sanitize(self, ctx: Context, value: str) -> str:
        """
        Upper-case, drop spaces and hyphens, and map look-alikes back into the
        alphabet ("abcd-ef0l" -> "ABCDEF01").
        """
        return value.translate(_SEPARATORS).upper().translate(_CROCKFORD_CONFUSABLES)


class PinGenerator(TokenGeneratorPort):
    """Zero-padded numeric PIN, e.g. for SMS."""

    def __init__(self, length: int = 6) -> None:
        self.length = _check_length(length)

    def generate(self, ctx: Context) -> str:
        return f"{secrets.randbelow(10**self.length):0{self.length}d}"

    def sanitize(self, ctx: Context, value: str) -> str:
        return value.translate(_SEPARATORS)
