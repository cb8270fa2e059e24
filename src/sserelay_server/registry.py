from __future__ import annotations

from typing import Dict, List, Optional

from .sse import SSEConnection


class ConnectionRegistry:
    """Maps a topic (URL path) to its single live subscriber connection.

    Plain map operations only. Protocol checks (duplicate subscribe, missing
    subscriber) belong to the dispatcher. Accessed from the event loop only.
    """

    def __init__(self) -> None:
        self._connections: Dict[str, SSEConnection] = {}

    def lookup(self, topic: str) -> Optional[SSEConnection]:
        return self._connections.get(topic)

    def register(self, topic: str, connection: SSEConnection) -> None:
        # Caller has already checked lookup(topic) is None.
        self._connections[topic] = connection

    def deregister(self, topic: str) -> None:
        self._connections.pop(topic, None)

    def topics(self) -> List[str]:
        return list(self._connections)

    def close_all(self) -> None:
        """Close every subscriber stream; close handlers deregister them."""
        for connection in list(self._connections.values()):
            connection.close()

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, topic: object) -> bool:
        return topic in self._connections
