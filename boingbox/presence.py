"""
Presence Registry
Maps a user id to the single connection id currently serving that user.
In-memory and process-local; the last registration for a user wins.
"""
from typing import Dict, Optional
import logging
from .core import ONLINE_USERS

logger = logging.getLogger(__name__)

class PresenceRegistry:
    """
    One entry per user. Methods never await, so under the asyncio loop each
    call runs to completion before any other handler can observe the map.
    """

    def __init__(self):
        self._entries: Dict[str, str] = {}

    @staticmethod
    def _key(user_id) -> str:
        return str(user_id)

    def register(self, user_id, connection_id: str) -> None:
        """Bind user_id to connection_id, replacing any previous binding"""
        key = self._key(user_id)
        previous = self._entries.get(key)
        self._entries[key] = connection_id
        ONLINE_USERS.set(len(self._entries))
        if previous and previous != connection_id:
            logger.info(f"User {key} re-registered: {previous} -> {connection_id}")
        else:
            logger.info(f"User {key} added to online users")

    def lookup(self, user_id) -> Optional[str]:
        if user_id is None:
            return None
        return self._entries.get(self._key(user_id))

    def unregister(self, connection_id: str) -> Optional[str]:
        """
        Remove the entry served by connection_id and return its user id.
        Linear in the number of online users. A connection that was replaced
        by a newer registration no longer appears here and removes nothing.
        """
        for user_id, conn_id in self._entries.items():
            if conn_id == connection_id:
                del self._entries[user_id]
                ONLINE_USERS.set(len(self._entries))
                logger.info(f"User {user_id} disconnected")
                return user_id
        return None

    def online_users(self) -> Dict[str, str]:
        return dict(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, user_id) -> bool:
        return self._key(user_id) in self._entries
