"""
In-process chat session store.

Holds one ChatAssistant per session_id, capped at ``max_sessions``;
the least recently used session is evicted first. Nothing is persisted.
"""

import logging
from collections import OrderedDict
from typing import Callable, Optional

from dashboard.chat import ChatAssistant

logger = logging.getLogger(__name__)


class ChatSessionStore:
    def __init__(self, max_sessions: int = 100):
        if max_sessions < 1:
            raise ValueError("max_sessions must be >= 1")
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, ChatAssistant]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> Optional[ChatAssistant]:
        assistant = self._sessions.get(session_id)
        if assistant is not None:
            self._sessions.move_to_end(session_id)
        return assistant

    def get_or_create(
        self, session_id: str, factory: Callable[[], ChatAssistant]
    ) -> ChatAssistant:
        assistant = self.get(session_id)
        if assistant is not None:
            return assistant

        assistant = factory()
        self._sessions[session_id] = assistant
        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.debug(f"Evicted chat session {evicted}")
        return assistant
