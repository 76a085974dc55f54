from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Protocol


class TokenStorePort(Protocol):
    async def store(self, token: str, uid: str, ttl: timedelta) -> None:
        """Hash and store the token for uid, replacing any previous one."""

    async def exists(self, uid: str) -> datetime:
        """
        Return the expiry of the live token stored for uid.
        Raise TokenNotFound if there is none, TokenExpired if it has lapsed.
        """

    async def verify(self, token: str, uid: str) -> bool:
        """
        True if token matches the one stored for uid, False on a mismatch.
        Raise TokenNotFound / TokenExpired instead of returning False when the
        stored token is missing or lapsed.
        """

    async def delete(self, uid: str, token: Optional[str] = None) -> bool:
        """
        Remove the token stored for uid; True if a row was removed.

        With a token, the row is only removed while it still holds that
        token, so of several callers consuming the same token exactly one
        gets True, and a token stored in the meantime survives.
        """
