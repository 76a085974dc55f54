from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Session:
    """One persisted token: the bcrypt hash, never the plaintext."""

    uid: str
    token_hash: str
    expires: datetime
    created: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires
