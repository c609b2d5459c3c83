import logging
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """Anything that can receive a JSON event; a Starlette WebSocket satisfies this."""

    async def send_json(self, data: Any) -> None:
        ...


class ConnectionRegistry:
    """
    Live channels per user id.

    Mutations happen on the event loop only (connect/disconnect in the
    WebSocket endpoint, sends from background tasks), so no locking is used.
    A user may hold several channels at once, e.g. one per browser tab.
    """

    def __init__(self) -> None:
        self._channels: Dict[int, List[Channel]] = {}

    def register(self, user_id: int, channel: Channel) -> None:
        self._channels.setdefault(user_id, []).append(channel)
        logger.info(f"User {user_id} joined their room ({len(self._channels[user_id])} open)")

    def unregister(self, user_id: int, channel: Optional[Channel] = None) -> None:
        """Drop one channel, or every channel of the user when none is given."""
        channels = self._channels.get(user_id)
        if not channels:
            return
        if channel is None:
            del self._channels[user_id]
        else:
            remaining = [c for c in channels if c is not channel]
            if remaining:
                self._channels[user_id] = remaining
            else:
                del self._channels[user_id]
        logger.info(f"User {user_id} left their room")

    def is_connected(self, user_id: int) -> bool:
        return bool(self._channels.get(user_id))

    async def send(self, user_id: int, event: Dict[str, Any]) -> int:
        """
        Push an event to every channel of the user.

        Best effort: a failing channel is logged and dropped, never raised.
        Returns the number of channels that accepted the event.
        """
        delivered = 0
        for channel in list(self._channels.get(user_id, [])):
            try:
                await channel.send_json(event)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping dead channel for user {user_id}: {e}")
                self.unregister(user_id, channel)
        return delivered
