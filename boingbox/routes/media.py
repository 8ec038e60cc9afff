from fastapi import APIRouter, File, Header, HTTPException, UploadFile
from ..schemas.common import ActionOkOut
from ..schemas.media import UploadUrlIn, UploadUrlOut, UploadOut, MediaOut, SignedUrlOut, MediaListOut
from ..crud import create_upload, submit_upload, mark_media_failed, get_media, can_access_media, list_user_media, delete_media
from ..cache import cache_media_status, get_cached_media_status, invalidate_media_status, check_rate_limit
from ..errors import AuthorizationError, ServiceUnavailableError, ValidationError
from ..media_pipeline import MediaWorkItem, media_pipeline
from ..media_processors import estimated_processing_time
from ..models import utcnow
from .. import storage
from datetime import timedelta
import asyncio
import logging
import math
import secrets

logger = logging.getLogger(__name__)

router = APIRouter()

SIGNED_URL_TTL = timedelta(hours=24)


async def _fail_unqueued(media, error: str):
    logger.warning(f"Media {media.file_id} was not queued: {error}")
    await mark_media_failed(media.file_id, error)
    await invalidate_media_status(media.file_id)


@router.post('/upload-url', response_model=UploadUrlOut)
async def upload_url(payload: UploadUrlIn):
    # max 50 upload slots per hour
    if not await check_rate_limit(payload.user_id, "media_upload", limit=50, window=3600):
        raise HTTPException(429, "Rate limit exceeded. Too many uploads.")
    media = await create_upload(payload)
    return UploadUrlOut(
        file_id=media.file_id,
        upload_url=f'/api/media/upload/{media.file_id}',
        upload_token=media.upload_token,
        expires_at=media.upload_expires_at,
    )


@router.post('/upload/{file_id}', response_model=UploadOut)
async def upload(file_id: str, file: UploadFile = File(None), upload_token: str = Header(None, alias='Upload-Token')):
    if file is None:
        raise ValidationError("No file uploaded")
    content = await file.read()
    media, path = await submit_upload(file_id, upload_token, file.filename, content)

    # waits here while the queue is full
    try:
        await media_pipeline.enqueue(MediaWorkItem(media.id, path, media.type))
    except asyncio.CancelledError:
        await asyncio.shield(_fail_unqueued(media, 'Upload cancelled before processing started'))
        raise
    except RuntimeError as e:
        await _fail_unqueued(media, str(e))
        raise ServiceUnavailableError("Media processing is unavailable")
    logger.info(f"Queued media {media.file_id} ({media.type}, {media.size} bytes)")

    return UploadOut(
        file_id=media.file_id,
        status=media.status,
        estimated_time=estimated_processing_time(media.type),
    )


@router.get('/status/{file_id}', response_model=MediaOut)
async def status(file_id: str):
    cached = await get_cached_media_status(file_id)
    if cached:
        return cached
    media = await get_media(file_id)
    out = MediaOut.model_validate(media)
    if media.status in ('completed', 'failed'):
        await cache_media_status(file_id, out.model_dump(mode='json'))
    return out


@router.get('/signed-url/{file_id}', response_model=SignedUrlOut)
async def signed_url(file_id: str, user_id: int = None):
    media = await get_media(file_id)
    if not await can_access_media(media, user_id):
        raise AuthorizationError("Access denied")
    original = media.urls.get('original')
    if not original:
        raise ValidationError("Media has not been uploaded yet")

    if storage.s3_enabled():
        key = storage.media_key(media.file_id, original.rsplit('/', 1)[-1])
        url = await storage.generate_presigned_get(key, expires_in=int(SIGNED_URL_TTL.total_seconds()))
    else:
        url = f'{original}?token={secrets.token_hex(16)}'

    return SignedUrlOut(url=url, expires_at=utcnow() + SIGNED_URL_TTL, type=media.type, size=media.size)


@router.get('/user/{user_id}', response_model=MediaListOut)
async def user_media(user_id: int, page: int = 1, limit: int = 20, type: str = None):
    items, total = await list_user_media(user_id, page=page, limit=limit, media_type=type)
    return {
        'media': items,
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'pages': math.ceil(total / limit) if limit else 0,
        },
    }


@router.delete('/{file_id}', response_model=ActionOkOut)
async def delete(file_id: str, user_id: int):
    await delete_media(file_id, user_id)
    await invalidate_media_status(file_id)
    return {'ok': True, 'message': 'Media deleted successfully'}
