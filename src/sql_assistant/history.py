"""
Chat History
============

Per-session conversation memory. The store is an explicit object handed to
whoever needs it; sessions never share state.
"""

import threading

from sql_assistant.llm.base import assistant, user
from sql_assistant.models import ChatMessage

DEFAULT_SESSION = "default"


class ChatHistoryStore:
    """In-memory chat history keyed by session id."""

    def __init__(self) -> None:
        self._sessions: dict[str, list[ChatMessage]] = {}
        self._lock = threading.Lock()

    def get_or_create(self, session_id: str = DEFAULT_SESSION) -> list[ChatMessage]:
        """Register the session if needed and return a copy of its messages."""
        with self._lock:
            return list(self._sessions.setdefault(session_id, []))

    def load(self, session_id: str = DEFAULT_SESSION) -> list[ChatMessage]:
        """Return a copy of the session's messages, oldest first."""
        with self._lock:
            return list(self._sessions.get(session_id, []))

    def append(self, question: str, answer: str, session_id: str = DEFAULT_SESSION) -> None:
        with self._lock:
            self._sessions.setdefault(session_id, []).extend(
                [user(question), assistant(answer)]
            )

    def clear(self, session_id: str = DEFAULT_SESSION) -> bool:
        """Forget a session. Returns whether it existed."""
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
