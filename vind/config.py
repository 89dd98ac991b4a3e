"""
Runtime configuration loaded from the environment (.env supported)
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class Settings:
    """Server and gateway settings"""
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    default_schema: str = "public"
    statement_timeout_ms: int = 0
    connect_timeout: int = 10
    dsn: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables"""
        return cls(
            host=os.getenv('HOST', cls.host),
            port=int(os.getenv('PORT', cls.port)),
            log_level=os.getenv('VIND_LOG_LEVEL', cls.log_level).upper(),
            default_schema=os.getenv('VIND_DEFAULT_SCHEMA', cls.default_schema),
            statement_timeout_ms=int(os.getenv('VIND_STATEMENT_TIMEOUT_MS', cls.statement_timeout_ms)),
            connect_timeout=int(os.getenv('VIND_CONNECT_TIMEOUT', cls.connect_timeout)),
            dsn=os.getenv('VIND_DSN') or None,
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process settings, reading the environment on first use"""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings

