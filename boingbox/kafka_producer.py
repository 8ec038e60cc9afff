import json
import logging
from . import core
from .models import utcnow

logger = logging.getLogger(__name__)

CALL_EVENTS_TOPIC = 'call-events'
MEDIA_EVENTS_TOPIC = 'media-events'

async def publish(topic:str, data:dict):
    if not core.KAFKA_PRODUCER:
        raise RuntimeError('Kafka producer not started')
    await core.KAFKA_PRODUCER.send_and_wait(topic, json.dumps(data, default=str).encode('utf-8'))

async def publish_event(topic: str, event: str, data: dict) -> bool:
    """Best-effort lifecycle event; the caller's operation never depends on it."""
    if not core.KAFKA_PRODUCER:
        return False
    try:
        await publish(topic, {'event': event, 'timestamp': utcnow().isoformat(), **data})
        return True
    except Exception as e:
        logger.warning(f'Failed to publish {event} to {topic}: {e}')
        return False
