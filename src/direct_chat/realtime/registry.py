"""In-process session registry: which connection currently speaks for a user."""
from __future__ import annotations

import logging
from uuid import UUID

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Maps user id → connection id, one active session per user.

    A newer registration for the same user replaces the older one
    (last-write-wins across reconnects and tabs). Nothing is persisted.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, str] = {}

    def register(self, user_id: UUID | str, connection_id: str) -> str | None:
        """Bind user to connection. Returns the connection id that was replaced, if any."""
        key = str(user_id)
        previous = self._sessions.get(key)
        self._sessions[key] = connection_id
        if previous is not None and previous != connection_id:
            logger.info("Session for %s moved %s -> %s", key, previous, connection_id)
        return previous

    def unregister(self, user_id: UUID | str, connection_id: str) -> bool:
        """Drop the session only if connection_id still owns it.

        A late disconnect of a superseded connection is a no-op.
        """
        key = str(user_id)
        if self._sessions.get(key) != connection_id:
            return False
        del self._sessions[key]
        return True

    def lookup(self, user_id: UUID | str) -> str | None:
        return self._sessions.get(str(user_id))

    def online_user_ids(self) -> list[str]:
        return list(self._sessions)

    def __contains__(self, user_id: object) -> bool:
        return str(user_id) in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
