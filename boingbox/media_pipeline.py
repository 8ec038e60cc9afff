"""
Media processing pipeline
A bounded in-process queue drained by a small pool of worker tasks.
Each item moves its Media record from processing to completed or failed;
failures are written to the record and never raised to the uploader.
"""
import asyncio
import logging
import os
import time
from typing import List, NamedTuple, Optional
from .core import MEDIA_PROCESSED, MEDIA_PROCESSING_SECONDS, MEDIA_QUEUE_DEPTH
from .kafka_producer import MEDIA_EVENTS_TOPIC, publish_event
from .media_processors import PROCESSORS
from .models import AsyncSessionLocal
from .models.media import Media

logger = logging.getLogger(__name__)


class MediaWorkItem(NamedTuple):
    media_id: int
    path: str
    type: str


class MediaPipeline:
    """
    Worker pool over an asyncio.Queue. The queue is bounded, so enqueue()
    waits while it is full. Items still queued when the pool stops are lost
    and their records stay in processing.
    """

    def __init__(self, workers: int = None, maxsize: int = None):
        self.worker_count = workers or int(os.getenv('MEDIA_WORKERS', '2'))
        self.maxsize = maxsize if maxsize is not None else int(os.getenv('MEDIA_QUEUE_SIZE', '100'))
        self.queue: Optional[asyncio.Queue] = None
        self.tasks: List[asyncio.Task] = []
        self.running = False
        self.processed_count = 0
        self.error_count = 0

    async def start(self):
        """Start the worker tasks on the running loop"""
        if self.running:
            return
        self.queue = asyncio.Queue(maxsize=self.maxsize)
        self.running = True
        self.tasks = [asyncio.create_task(self._worker(i)) for i in range(self.worker_count)]
        logger.info(f"Started {self.worker_count} media workers (queue size {self.maxsize})")

    async def stop(self):
        """Stop the workers; unprocessed items are dropped"""
        if not self.running:
            return
        self.running = False
        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
        dropped = self.queue.qsize()
        if dropped:
            logger.warning(f"Media pipeline stopped with {dropped} unprocessed items")
        self.tasks = []
        self.queue = None
        MEDIA_QUEUE_DEPTH.set(0)
        logger.info("Media workers stopped")

    async def enqueue(self, item: MediaWorkItem):
        if not self.running:
            raise RuntimeError('Media pipeline is not running')
        await self.queue.put(item)
        MEDIA_QUEUE_DEPTH.set(self.queue.qsize())

    async def join(self):
        """Wait until every enqueued item has been processed"""
        if self.queue is not None:
            await self.queue.join()

    def qsize(self) -> int:
        return self.queue.qsize() if self.queue is not None else 0

    async def _worker(self, index: int):
        while True:
            item = await self.queue.get()
            MEDIA_QUEUE_DEPTH.set(self.queue.qsize())
            try:
                await self.process_item(item)
            except Exception as e:
                # store errors while recording the outcome; the record stays in processing
                logger.error(f"Media worker {index} could not record item {item.media_id}: {e}")
            finally:
                self.queue.task_done()

    async def process_item(self, item: MediaWorkItem) -> Optional[str]:
        """Process one item and return the record's final status, or None if skipped"""
        async with AsyncSessionLocal() as session:
            media = await session.get(Media, item.media_id)
            if media is None:
                logger.warning(f"Media {item.media_id} not found, skipping")
                return None
            if media.status != 'processing':
                logger.info(f"Media {media.file_id} is {media.status}, skipping")
                return None

            started = time.monotonic()
            try:
                processor = PROCESSORS.get(item.type)
                if processor is None:
                    raise ValueError(f"Unsupported media type: {item.type}")
                await processor(media, item.path)
                elapsed = time.monotonic() - started
                media.status = 'completed'
                media.processing['processing_time'] = int(elapsed * 1000)
                MEDIA_PROCESSING_SECONDS.labels(type=item.type).observe(elapsed)
                self.processed_count += 1
                logger.info(f"Media processing completed: {media.file_id}")
            except Exception as e:
                media.status = 'failed'
                media.processing['error'] = str(e)
                self.error_count += 1
                logger.error(f"Media processing failed: {media.file_id}: {e}")

            await session.commit()

        MEDIA_PROCESSED.labels(type=item.type, status=media.status).inc()
        await publish_event(MEDIA_EVENTS_TOPIC, f'media-{media.status}', {
            'file_id': media.file_id,
            'uploader_id': media.uploader_id,
            'type': media.type,
        })
        return media.status

    def get_stats(self) -> dict:
        return {
            'running': self.running,
            'workers': len(self.tasks),
            'queued': self.qsize(),
            'processed': self.processed_count,
            'errors': self.error_count,
        }

# Global pipeline, started with the app
media_pipeline = MediaPipeline()
