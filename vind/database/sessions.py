"""
Per-client session registry holding one live adapter per session id
"""

import threading
from typing import Dict, Any, Optional

from ..errors import NotConnectedError
from ..utils.logger import setup_logger
from .adapters import DatabaseAdapter
from .factory import DatabaseFactory, redact_dsn

DEFAULT_SESSION = "default"


class SessionManager:
    """Track the active adapter of each client session

    Connecting a session that already has an adapter swaps in the new one and
    disconnects the old, so a superseded adapter answers every later call with
    NotConnectedError instead of running against a stale handle.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self._sessions: Dict[str, DatabaseAdapter] = {}
        self._lock = threading.Lock()
        self.logger = setup_logger("vind.sessions")

    def connect(self, dsn: str, driver: Optional[str] = None,
                session_id: str = DEFAULT_SESSION) -> DatabaseAdapter:
        """Open a new adapter for the session, replacing any previous one"""
        driver = DatabaseFactory.resolve_driver(driver, dsn)
        adapter = DatabaseFactory.create_connector(driver, self.config)
        adapter.connect(dsn)

        with self._lock:
            previous = self._sessions.get(session_id)
            self._sessions[session_id] = adapter

        if previous is not None and previous is not adapter:
            previous.disconnect()
            self.logger.info(f"Session {session_id}: previous connection closed")

        self.logger.info(f"Session {session_id}: connected to {redact_dsn(dsn)}")
        return adapter

    def get(self, session_id: str = DEFAULT_SESSION) -> DatabaseAdapter:
        with self._lock:
            adapter = self._sessions.get(session_id)
        if adapter is None or not adapter.is_connected:
            raise NotConnectedError()
        return adapter

    def is_connected(self, session_id: str = DEFAULT_SESSION) -> bool:
        with self._lock:
            adapter = self._sessions.get(session_id)
        return adapter is not None and adapter.is_connected

    def disconnect(self, session_id: str = DEFAULT_SESSION) -> bool:
        """Drop the session's adapter; False when there was none"""
        with self._lock:
            adapter = self._sessions.pop(session_id, None)
        if adapter is None:
            return False
        adapter.disconnect()
        self.logger.info(f"Session {session_id}: disconnected")
        return True

    def close_all(self):
        with self._lock:
            adapters = list(self._sessions.items())
            self._sessions.clear()
        for session_id, adapter in adapters:
            adapter.disconnect()
            self.logger.info(f"Session {session_id}: disconnected")

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)
