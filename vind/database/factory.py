"""
Database factory for creating appropriate database adapters
"""

from typing import Dict, Any, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from ..errors import UnsupportedOperationError, ValidationError
from .adapters import DatabaseAdapter, PostgreSQLAdapter


class DatabaseFactory:
    """Factory class to create appropriate database connector"""

    @staticmethod
    def create_connector(driver: str, config: Optional[Dict[str, Any]] = None) -> DatabaseAdapter:
        """Create database adapter based on driver name"""
        if (driver or '').lower() in DatabaseFactory.get_supported_types():
            return PostgreSQLAdapter(config)
        raise UnsupportedOperationError(f"Unsupported driver: {driver}")

    @staticmethod
    def get_supported_types() -> list:
        """Get list of supported driver names"""
        return ['postgres', 'postgresql']

    @staticmethod
    def driver_from_dsn(dsn: str) -> Optional[str]:
        """Backend name of a URL-style DSN, None for key=value DSNs"""
        if not dsn or '://' not in dsn:
            return None
        try:
            return make_url(dsn).get_backend_name()
        except ArgumentError as e:
            raise ValidationError(f"invalid connection string: {e}") from e

    @staticmethod
    def resolve_driver(driver: Optional[str], dsn: str) -> str:
        """Explicit driver wins, otherwise take it from the DSN scheme"""
        if driver:
            return driver
        detected = DatabaseFactory.driver_from_dsn(dsn)
        if not detected:
            raise ValidationError("driver is required for this connection string")
        return detected


def redact_dsn(dsn: str) -> str:
    """DSN safe for logging, password hidden"""
    if dsn and '://' in dsn:
        try:
            return make_url(dsn).render_as_string(hide_password=True)
        except ArgumentError:
            return '<unparseable dsn>'
    parts = []
    for token in (dsn or '').split():
        key, sep, _ = token.partition('=')
        parts.append(f"{key}=***" if sep and key.lower() == 'password' else token)
    return ' '.join(parts)
