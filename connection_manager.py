from typing import Dict, Optional, Set
from fastapi import WebSocket
import json
import logging
import uuid

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Live WebSocket connections and the named groups they subscribe to.

    Every send is fire-and-forget: messages to unknown or broken
    connections are logged and dropped.
    """

    def __init__(self):
        self.connections: Dict[str, WebSocket] = {}
        self.groups: Dict[str, Set[str]] = {}

    def connect(self, websocket: WebSocket) -> str:
        connection_id = uuid.uuid4().hex
        self.connections[connection_id] = websocket
        logger.info(f"Connection {connection_id} registered ({len(self.connections)} live)")
        return connection_id

    def disconnect(self, connection_id: str):
        self.connections.pop(connection_id, None)
        for group_id in list(self.groups):
            self.leave_group(group_id, connection_id)
        logger.info(f"Connection {connection_id} removed ({len(self.connections)} live)")

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self.connections

    def join_group(self, group_id: str, connection_id: str):
        self.groups.setdefault(group_id, set()).add(connection_id)

    def leave_group(self, group_id: str, connection_id: str):
        members = self.groups.get(group_id)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self.groups[group_id]

    def group_members(self, group_id: str) -> Set[str]:
        return set(self.groups.get(group_id, ()))

    @property
    def connection_count(self) -> int:
        return len(self.connections)

    async def send_to(self, connection_id: str, event: str, data: Optional[dict] = None):
        websocket = self.connections.get(connection_id)
        if websocket is None:
            logger.debug(f"Dropping {event} for unknown connection {connection_id}")
            return
        message = {"type": event}
        if data:
            message.update(data)
        try:
            await websocket.send_text(json.dumps(message, ensure_ascii=False))
        except Exception as e:
            logger.warning(f"Error sending {event} to connection {connection_id}: {e}")

    async def close_all(self, code: int = 1001):
        for connection_id, websocket in list(self.connections.items()):
            try:
                await websocket.close(code=code)
            except Exception as e:
                logger.debug(f"Error closing connection {connection_id}: {e}")
        self.connections.clear()
        self.groups.clear()

    async def broadcast(self, group_id: str, event: str, data: Optional[dict] = None, exclude: Optional[str] = None):
        for connection_id in self.group_members(group_id):
            if connection_id != exclude:
                await self.send_to(connection_id, event, data)
