"""
Error taxonomy shared by the query builder, gateways and the HTTP layer
"""

from typing import Optional


class VindError(Exception):
    """Base class for every error raised by the data-access layer"""

    category = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(VindError):
    """Request rejected before any SQL was built or sent"""

    category = "validation"


class InvalidIdentifierError(ValidationError):
    """Schema, table, column or constraint name failed the allow-list"""

    def __init__(self, kind: str, name):
        super().__init__(f"invalid {kind} name: {name!r}")
        self.kind = kind
        self.name = name


class NotConnectedError(VindError):
    """Operation attempted without a live connection"""

    category = "connection_state"

    def __init__(self, message: str = "no active connection"):
        super().__init__(message)


class UnsupportedOperationError(VindError):
    """Unknown DDL action, constraint type or driver"""

    category = "unsupported"


class DatabaseEngineError(VindError):
    """The database rejected or failed a statement; message kept verbatim"""

    category = "engine"

    def __init__(self, message: str, pgcode: Optional[str] = None):
        super().__init__(message)
        self.pgcode = pgcode

    @classmethod
    def from_driver_error(cls, exc: Exception) -> "DatabaseEngineError":
        """Wrap a driver exception without rewriting its message"""
        message = getattr(exc, 'pgerror', None) or str(exc)
        return cls(message.strip(), pgcode=getattr(exc, 'pgcode', None))


class DatabaseConnectionError(DatabaseEngineError):
    """Opening the connection or the liveness probe failed"""
