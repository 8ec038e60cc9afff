"""
Local storage for uploaded media
Files live under MEDIA_UPLOAD_DIR/<file_id>/ and are served from /uploads.
"""

import os
import re
import shutil
import aiofiles
from typing import Optional, Tuple

# Configuration
UPLOAD_DIR = os.getenv('MEDIA_UPLOAD_DIR', 'uploads')
PUBLIC_PREFIX = '/uploads'

# Ensure upload directory exists
os.makedirs(UPLOAD_DIR, exist_ok=True)

_UNSAFE = re.compile(r'[^A-Za-z0-9._-]+')

class FileStorageManager:
    """Writes, locates and removes media files on local disk"""

    @staticmethod
    def safe_filename(original_filename: str) -> str:
        name = os.path.basename(original_filename or '') or 'upload'
        name = _UNSAFE.sub('_', name).lstrip('.')
        return name or 'upload'

    @staticmethod
    def media_dir(file_id: str) -> str:
        return os.path.join(UPLOAD_DIR, file_id)

    @staticmethod
    def get_public_url(file_id: str, filename: str) -> str:
        return f"{PUBLIC_PREFIX}/{file_id}/{filename}"

    @staticmethod
    def derived_name(filename: str, suffix: str, extension: Optional[str] = None) -> str:
        """photo.png + thumb -> photo_thumb.png (or photo_thumb.jpg with extension='.jpg')"""
        stem, ext = os.path.splitext(filename)
        return f"{stem}_{suffix}{extension if extension is not None else ext}"

    @classmethod
    async def save_upload(cls, file_id: str, original_filename: str, content: bytes) -> Tuple[str, str]:
        """Save uploaded bytes and return (path on disk, public URL)"""
        filename = cls.safe_filename(original_filename)
        directory = cls.media_dir(file_id)
        os.makedirs(directory, exist_ok=True)
        file_path = os.path.join(directory, filename)

        async with aiofiles.open(file_path, 'wb') as f:
            await f.write(content)

        return file_path, cls.get_public_url(file_id, filename)

    @classmethod
    async def save_derived(cls, file_id: str, filename: str, content: bytes) -> str:
        """Write a derived file (thumbnail etc.) beside the original; returns its URL"""
        directory = cls.media_dir(file_id)
        os.makedirs(directory, exist_ok=True)
        async with aiofiles.open(os.path.join(directory, filename), 'wb') as f:
            await f.write(content)
        return cls.get_public_url(file_id, filename)

    @classmethod
    def delete_media_files(cls, file_id: str) -> bool:
        directory = cls.media_dir(file_id)
        if os.path.isdir(directory):
            shutil.rmtree(directory)
            return True
        return False

# Global instance
file_storage = FileStorageManager()
