"""
Per-session store of request-captured variables.

Values captured from a response stay available to later requests of the
same session until the session is cleared.
"""

import logging
import threading
from typing import Mapping


logger = logging.getLogger(__name__)


class SessionStore:
    """
    Thread-safe mapping of session id to captured variables.

    Sessions live for the lifetime of the process. There is no cap or expiry:
    a session is only dropped by ``clear`` (DELETE /api/variables/sessions/{id}),
    so clients that open many sessions are expected to clear them.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: dict[str, dict[str, str]] = {}

    def get(self, session_id: str) -> dict[str, str]:
        """Return a copy of the session's captured variables."""
        with self._lock:
            return dict(self._sessions.get(session_id, {}))

    def record(self, session_id: str, values: Mapping[str, str]) -> dict[str, str]:
        """
        Merge newly captured values into a session.

        Later captures of the same name replace earlier ones.

        Returns:
            A copy of the session's variables after the merge
        """
        with self._lock:
            session = self._sessions.setdefault(session_id, {})
            session.update(values)
            if values:
                logger.info("Session %s captured %s", session_id, ", ".join(values))
            return dict(session)

    def clear(self, session_id: str) -> bool:
        """Forget a session's captured variables; returns False if it had none."""
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def sessions(self) -> list[str]:
        with self._lock:
            return list(self._sessions)


session_store = SessionStore()


def get_session_store() -> SessionStore:
    """Dependency function for FastAPI to get the session store."""
    return session_store
