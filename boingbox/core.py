import os
import asyncio
from prometheus_client import Counter, Gauge, Histogram, start_http_server
import logging

logger = logging.getLogger(__name__)

KAFKA_PRODUCER = None
REDIS = None

# Prometheus metrics
ONLINE_USERS = Gauge('boingbox_online_users', 'Users with a registered live connection')
RELAY_EVENTS = Counter('boingbox_relay_events_total', 'Relayed signaling events', ['event', 'outcome'])
CALL_TRANSITIONS = Counter('boingbox_call_transitions_total', 'Call state transitions', ['action'])
MEDIA_QUEUE_DEPTH = Gauge('boingbox_media_queue_depth', 'Media items waiting for processing')
MEDIA_PROCESSED = Counter('boingbox_media_processed_total', 'Processed media items', ['type', 'status'])
MEDIA_PROCESSING_SECONDS = Histogram('boingbox_media_processing_seconds', 'Media processing time', ['type'])


def init_metrics(port: int = None):
    """Initialize Prometheus metrics server"""
    port = port or int(os.getenv('METRICS_PORT', '8001'))
    try:
        start_http_server(port)
        logger.info(f"Prometheus metrics server started on port {port}")
    except Exception as e:
        logger.warning(f'Prometheus start failed: {e}')

async def kafka_startup():
    """Start Kafka producer with retries"""
    global KAFKA_PRODUCER

    from aiokafka import AIOKafkaProducer

    brokers = os.getenv('KAFKA_BOOTSTRAP_SERVERS', 'kafka:9092')
    max_retries = 3
    retry_delay = 5  # seconds

    for attempt in range(max_retries):
        producer = None
        try:
            logger.info(f"Attempting to connect to Kafka brokers: {brokers} (attempt {attempt + 1}/{max_retries})")

            producer = AIOKafkaProducer(
                bootstrap_servers=brokers,
                retry_backoff_ms=500,
                request_timeout_ms=30000,
                linger_ms=100,
                compression_type='gzip',
                acks='all',
            )
            await producer.start()
            KAFKA_PRODUCER = producer

            logger.info("Kafka producer connected successfully")
            break

        except Exception as e:
            logger.warning(f'Kafka startup attempt {attempt + 1} failed: {e}')
            if producer:
                try:
                    await producer.stop()
                except Exception as stop_error:
                    logger.debug(f'Kafka producer stop failed: {stop_error}')
            KAFKA_PRODUCER = None

            if attempt < max_retries - 1:
                logger.info(f"Retrying Kafka connection in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
            else:
                logger.error("Failed to connect to Kafka after all retries")

async def redis_startup():
    """Start Redis connection with connection pooling"""
    global REDIS

    import redis.asyncio as aioredis

    redis_url = os.getenv('REDIS_URL', 'redis://redis:6379/0')
    max_retries = 3
    retry_delay = 3  # seconds

    for attempt in range(max_retries):
        client = None
        try:
            logger.info(f"Attempting to connect to Redis: {redis_url} (attempt {attempt + 1}/{max_retries})")

            client = aioredis.from_url(
                redis_url,
                decode_responses=False,
                max_connections=20,
                health_check_interval=30,
                socket_connect_timeout=5,
                socket_timeout=5
            )
            await client.ping()
            REDIS = client

            logger.info("Redis connected successfully")
            break

        except Exception as e:
            logger.warning(f'Redis startup attempt {attempt + 1} failed: {e}')
            if client:
                try:
                    await client.aclose()
                except Exception as close_error:
                    logger.debug(f'Redis close failed: {close_error}')
            REDIS = None

            if attempt < max_retries - 1:
                logger.info(f"Retrying Redis connection in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
            else:
                logger.error("Failed to connect to Redis after all retries")

async def shutdown_connections():
    """Gracefully shutdown all connections"""
    global KAFKA_PRODUCER, REDIS
    logger.info("Shutting down connections...")

    if KAFKA_PRODUCER:
        try:
            await KAFKA_PRODUCER.stop()
            logger.info("Kafka producer stopped")
        except Exception as e:
            logger.error(f"Error stopping Kafka producer: {e}")
        KAFKA_PRODUCER = None

    if REDIS:
        try:
            await REDIS.aclose()
            logger.info("Redis connection closed")
        except Exception as e:
            logger.error(f"Error closing Redis connection: {e}")
        REDIS = None
