from __future__ import annotations

from typing import Dict, Tuple


class InMemoryChapterCache:
    """Process-local chapter memo, namespaced by session."""

    def __init__(self, session_id: str = "default"):
        self.session_id = session_id
        self._entries: Dict[Tuple[str, str], str] = {}

    async def get(self, key: str) -> str | None:
        return self._entries.get((self.session_id, key))

    async def put(self, key: str, value: str) -> None:
        self._entries[(self.session_id, key)] = value

    def for_session(self, session_id: str) -> "InMemoryChapterCache":
        scoped = InMemoryChapterCache(session_id)
        scoped._entries = self._entries
        return scoped

    def __len__(self) -> int:
        return sum(1 for session, _ in self._entries if session == self.session_id)
