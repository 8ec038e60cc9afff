"""
Type-specific media handlers
Each handler fills in urls, metadata and processing flags on a Media record.
Only images are decoded (with Pillow); video, audio and document handlers
record derived-file references and fixed metadata.
"""
import asyncio
import io
import os
from typing import Awaitable, Callable, Dict
from PIL import Image
from .file_storage import file_storage
from .models.media import Media

THUMBNAIL_SIZE = (320, 320)

# Estimated processing time per type, in seconds
ESTIMATED_PROCESSING_TIME = {
    'image': 5,
    'video': 30,
    'audio': 15,
    'document': 10,
}

def estimated_processing_time(media_type: str) -> int:
    return ESTIMATED_PROCESSING_TIME.get(media_type, 10)


def _derived_url(media: Media, path: str, suffix: str, extension=None) -> str:
    return file_storage.get_public_url(media.file_id, file_storage.derived_name(os.path.basename(path), suffix, extension))


def _render_thumbnail(path: str):
    with Image.open(path) as img:
        width, height = img.size
        image_format = img.format
        thumb = img.convert('RGB') if img.mode != 'RGB' else img.copy()
    thumb.thumbnail(THUMBNAIL_SIZE, Image.Resampling.LANCZOS)
    output = io.BytesIO()
    thumb.save(output, format='JPEG', quality=85, optimize=True)
    return width, height, image_format, output.getvalue()


async def process_image(media: Media, path: str):
    width, height, image_format, thumbnail = await asyncio.to_thread(_render_thumbnail, path)
    name = file_storage.derived_name(os.path.basename(path), 'thumb', '.jpg')
    media.urls['thumbnail'] = await file_storage.save_derived(media.file_id, name, thumbnail)
    media.processing['thumbnail_generated'] = True
    media.file_metadata.update({'width': width, 'height': height, 'format': image_format})


async def process_video(media: Media, path: str):
    media.urls['thumbnail'] = _derived_url(media, path, 'thumb')
    media.urls['preview'] = _derived_url(media, path, 'preview')
    media.processing['thumbnail_generated'] = True
    media.file_metadata.update({'width': 1920, 'height': 1080, 'duration': 60, 'fps': 30, 'format': 'MP4'})


async def process_audio(media: Media, path: str):
    media.urls['waveform'] = _derived_url(media, path, 'waveform')
    media.processing['waveform_generated'] = True
    media.file_metadata.update({'duration': 180, 'channels': 2, 'sample_rate': 44100, 'format': 'MP3'})


async def process_document(media: Media, path: str):
    media.urls['preview'] = _derived_url(media, path, 'preview')
    media.file_metadata['format'] = media.extension.upper() or None


PROCESSORS: Dict[str, Callable[[Media, str], Awaitable[None]]] = {
    'image': process_image,
    'video': process_video,
    'audio': process_audio,
    'document': process_document,
}
