from __future__ import annotations

from datetime import datetime
from enum import Enum


class ErrorKind(str, Enum):
    UNKNOWN_STRATEGY = "unknown_strategy"
    NOT_VALID_FOR_CONTEXT = "not_valid_for_context"
    TOKEN_NOT_FOUND = "token_not_found"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_NOT_CONSUMED = "token_not_consumed"
    DB_CONNECTION_NOT_VALID = "db_connection_not_valid"
    TABLE_NAME_NOT_VALID = "table_name_not_valid"
    STORE_ERROR = "store_error"
    DELIVERY_FAILED = "delivery_failed"


class PasswordlessError(Exception):
    """Base class for all passwordless errors."""

    kind: ErrorKind
    default_message: str = "passwordless error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class UnknownStrategy(PasswordlessError):
    """No strategy is registered under the requested name."""

    kind = ErrorKind.UNKNOWN_STRATEGY
    default_message = "unknown strategy"

    def __init__(self, name: str | None = None) -> None:
        self.name = name
        super().__init__(f"unknown strategy: {name}" if name else None)


class NotValidForContext(PasswordlessError):
    """The strategy refused to run for the current context."""

    kind = ErrorKind.NOT_VALID_FOR_CONTEXT
    default_message = "strategy not valid for context"


class TokenNotFound(PasswordlessError):
    """No token is stored for the user."""

    kind = ErrorKind.TOKEN_NOT_FOUND
    default_message = "the token does not exist"


class TokenExpired(PasswordlessError):
    """A token is stored for the user but its TTL has lapsed."""

    kind = ErrorKind.TOKEN_EXPIRED
    default_message = "the token is expired"

    def __init__(self, expires: datetime | None = None) -> None:
        self.expires = expires
        super().__init__()


class TokenNotConsumed(PasswordlessError):
    """
    The token verified, but deleting it afterwards failed.

    The user IS authenticated (`valid` is always True); the token may still be
    replayable until it expires. The delete error is chained as __cause__.
    """

    kind = ErrorKind.TOKEN_NOT_CONSUMED
    default_message = "token verified but could not be consumed"
    valid = True

    def __init__(self, uid: str) -> None:
        self.uid = uid
        super().__init__()


class DBConnectionNotValid(PasswordlessError):
    kind = ErrorKind.DB_CONNECTION_NOT_VALID
    default_message = "db connection is not valid"


class TableNameNotValid(PasswordlessError):
    kind = ErrorKind.TABLE_NAME_NOT_VALID
    default_message = "table name is not valid"


class StoreError(PasswordlessError):
    """The backing store failed or returned a row it could not read."""

    kind = ErrorKind.STORE_ERROR
    default_message = "token store error"


class DeliveryFailed(PasswordlessError):
    """A transport could not deliver the token."""

    kind = ErrorKind.DELIVERY_FAILED
    default_message = "token delivery failed"
