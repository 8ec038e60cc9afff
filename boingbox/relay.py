"""
Signaling Relay
Forwards named live events from one user's connection to another's.
Delivery is best-effort: an offline recipient is a silent drop, and the
sender cannot tell a delivery from a drop.
"""
from typing import Any, Callable, Dict, NamedTuple
import logging
from .core import RELAY_EVENTS
from .presence import PresenceRegistry
from .ws_manager import ConnectionManager

logger = logging.getLogger(__name__)

REGISTER_EVENT = 'add-user'


class Route(NamedTuple):
    outbound: str
    shape: Callable[[dict], Any]


def _message_body(data: dict):
    return data.get('msg') or data.get('message')

def _incoming_call(data: dict):
    return {
        'from': {'_id': data.get('from'), 'type': data.get('type')},
        'type': data.get('type'),
        'participants': data.get('participants'),
    }

def _sender_and_type(data: dict):
    return {'from': data.get('from'), 'type': data.get('type')}

def _sender_only(data: dict):
    return {'from': data.get('from')}

def _whole_frame(data: dict):
    return data


# Inbound event names are kept wire-compatible with the existing web client,
# including the renames on typing, call-request and call-end.
ROUTES: Dict[str, Route] = {
    'send-msg': Route('msg-receive', _message_body),
    'typing': Route('typing-receive', _whole_frame),
    'call-request': Route('incoming-call', _incoming_call),
    'call-accepted': Route('call-accepted', _sender_and_type),
    'call-rejected': Route('call-rejected', _sender_only),
    'call-end': Route('call-ended', _sender_only),
    'call-ice-candidate': Route('call-ice-candidate', _whole_frame),
    'call-offer': Route('call-offer', _whole_frame),
    'call-answer-sdp': Route('call-answer-sdp', _whole_frame),
}


class SignalingRelay:
    def __init__(self, registry: PresenceRegistry, connections: ConnectionManager):
        self.registry = registry
        self.connections = connections

    async def relay(self, event: str, sender_id, recipient_id, payload) -> bool:
        """
        Deliver payload to recipient_id's connection tagged with event.
        Returns False when the recipient is offline or the send failed;
        nothing is raised, queued or retried.
        """
        connection_id = self.registry.lookup(recipient_id)
        if connection_id is None:
            RELAY_EVENTS.labels(event=event, outcome='dropped').inc()
            logger.info(f"{event} from {sender_id} dropped: user {recipient_id} is not online")
            return False

        delivered = await self.connections.send(connection_id, {'event': event, 'data': payload})
        RELAY_EVENTS.labels(event=event, outcome='delivered' if delivered else 'failed').inc()
        if delivered:
            logger.debug(f"{event} relayed from {sender_id} to {recipient_id}")
        else:
            # the socket is gone; keep the registry in step with the connection table
            self.disconnect(connection_id)
        return delivered

    def register(self, connection_id: str, data) -> bool:
        user_id = data
        if isinstance(data, dict):
            user_id = data.get('userId', data.get('user_id'))
        if user_id is None or isinstance(user_id, (dict, list)):
            logger.warning(f"Invalid {REGISTER_EVENT} payload on {connection_id}")
            return False
        self.registry.register(user_id, connection_id)
        return True

    async def handle(self, connection_id: str, event: str, data) -> bool:
        """Dispatch one inbound frame received on connection_id"""
        if event == REGISTER_EVENT:
            return self.register(connection_id, data)

        route = ROUTES.get(event)
        if route is None:
            logger.debug(f"Ignoring unknown event {event!r} on {connection_id}")
            return False

        if not isinstance(data, dict) or data.get('to') is None:
            logger.info(f"Invalid {event} data on {connection_id}")
            return False

        return await self.relay(route.outbound, data.get('from'), data['to'], route.shape(data))

    def disconnect(self, connection_id: str):
        """Forget a closed connection; returns the user id it served, if any"""
        user_id = self.registry.unregister(connection_id)
        self.connections.disconnect(connection_id)
        return user_id
