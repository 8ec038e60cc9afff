from typing import Dict, Optional
from fastapi import WebSocket
import logging
import uuid

logger = logging.getLogger(__name__)

class ConnectionManager:
    """Live WebSocket connections keyed by a per-connection id"""

    def __init__(self):
        self.connections: Dict[str, WebSocket] = {}

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        self.connections[connection_id] = websocket
        logger.info(f"New client connected: {connection_id}")
        return connection_id

    def disconnect(self, connection_id: str) -> Optional[WebSocket]:
        websocket = self.connections.pop(connection_id, None)
        if websocket is not None:
            logger.info(f"Client disconnected: {connection_id}")
        return websocket

    async def send(self, connection_id: str, message: dict) -> bool:
        """Send one JSON frame; a socket that fails to send is dropped"""
        websocket = self.connections.get(connection_id)
        if websocket is None:
            return False
        try:
            await websocket.send_json(message)
            return True
        except Exception as e:
            logger.warning(f"Send to {connection_id} failed: {e}")
            self.disconnect(connection_id)
            return False

    def __len__(self) -> int:
        return len(self.connections)
