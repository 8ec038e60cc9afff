import json
import logging
from fastapi import APIRouter, WebSocket, Query
from ..auth import decode_token
from ..presence import PresenceRegistry
from ..relay import SignalingRelay
from ..ws_manager import ConnectionManager

logger = logging.getLogger(__name__)

router = APIRouter()

registry = PresenceRegistry()
manager = ConnectionManager()
relay = SignalingRelay(registry, manager)

@router.websocket('/chat')
async def chat_ws(websocket: WebSocket, token: str = Query(None)):
    """
    Frames in both directions are {"event": name, "data": payload}.
    A valid token registers its user immediately; otherwise the client
    identifies itself with an "add-user" frame.
    """
    user = None
    if token:
        user = decode_token(token)
        if not user:
            await websocket.close(code=1008)
            return
    connection_id = await manager.connect(websocket)
    if user:
        relay.register(connection_id, user.get('id'))
    try:
        while True:
            message = await websocket.receive()
            if message['type'] == 'websocket.disconnect':
                break
            raw = message.get('text')
            if raw is None:
                # only JSON text frames are part of the protocol
                logger.info(f"Binary frame on {connection_id}, closing")
                relay.disconnect(connection_id)
                await websocket.close(code=1003)
                break
            try:
                frame = json.loads(raw)
            except ValueError:
                logger.info(f"Malformed frame on {connection_id}")
                continue
            if not isinstance(frame, dict) or 'event' not in frame:
                logger.info(f"Frame without event on {connection_id}")
                continue
            await relay.handle(connection_id, frame['event'], frame.get('data'))
    finally:
        relay.disconnect(connection_id)
