import os
import aioboto3
from botocore.config import Config

# Media is mirrored to S3 only when a bucket is configured
S3_BUCKET = os.getenv('AWS_S3_BUCKET')

def s3_enabled() -> bool:
    return bool(S3_BUCKET)

def _client(session):
    region = os.getenv('AWS_S3_REGION') or os.getenv('AWS_REGION', 'us-east-1')
    return session.client('s3', region_name=region,
                          aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
                          aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
                          config=Config(signature_version='s3v4'))

async def generate_presigned_get(key: str, expires_in: int = 86400):
    """Generate a presigned GET URL for reading an object (default 24 h)."""
    session = aioboto3.Session()
    async with _client(session) as client:
        url = await client.generate_presigned_url('get_object',
                                                 Params={'Bucket': S3_BUCKET, 'Key': key},
                                                 ExpiresIn=expires_in)
        return url

def media_key(file_id: str, filename: str) -> str:
    return f'media/{file_id}/{filename}'

async def upload_object(key: str, content: bytes, content_type: str):
    session = aioboto3.Session()
    async with _client(session) as client:
        await client.put_object(Bucket=S3_BUCKET, Key=key, Body=content, ContentType=content_type)

async def delete_prefix(prefix: str) -> bool:
    session = aioboto3.Session()
    try:
        async with _client(session) as client:
            listing = await client.list_objects_v2(Bucket=S3_BUCKET, Prefix=prefix)
            for obj in listing.get('Contents', []):
                await client.delete_object(Bucket=S3_BUCKET, Key=obj['Key'])
            return True
    except Exception:
        return False
