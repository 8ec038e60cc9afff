from datetime import timedelta
from sqlalchemy import Column, Integer, String, BigInteger, DateTime, ForeignKey, JSON
from sqlalchemy.ext.mutable import MutableDict
from . import Base, utcnow

MEDIA_TYPES = ('image', 'video', 'audio', 'document')
MEDIA_STATUSES = ('uploading', 'processing', 'completed', 'failed')
MEDIA_TTL = timedelta(days=30)


def _default_expiry():
    return utcnow() + MEDIA_TTL


class Media(Base):
    __tablename__ = 'media'
    id = Column(Integer, primary_key=True)
    file_id = Column(String(32), unique=True, index=True, nullable=False)
    original_name = Column(String, nullable=False)
    mime_type = Column(String(255), nullable=False)
    size = Column(BigInteger, nullable=False)
    type = Column(String(20), index=True, nullable=False)
    uploader_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), index=True, nullable=False)
    status = Column(String(20), default='uploading', index=True, nullable=False)
    upload_token = Column(String(64), nullable=True)
    upload_expires_at = Column(DateTime, nullable=True)
    storage_path = Column(String, nullable=True)
    urls = Column(MutableDict.as_mutable(JSON), nullable=False, default=dict)
    # "metadata" is reserved on declarative classes
    file_metadata = Column('metadata', MutableDict.as_mutable(JSON), nullable=False, default=dict)
    processing = Column(MutableDict.as_mutable(JSON), nullable=False, default=lambda: {
        'thumbnail_generated': False,
        'waveform_generated': False,
        'optimized': False,
    })
    permissions = Column(MutableDict.as_mutable(JSON), nullable=False, default=lambda: {
        'public': False,
        'allowed_users': [],
        'allowed_groups': [],
    })
    expires_at = Column(DateTime, default=_default_expiry, index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def extension(self) -> str:
        return self.original_name.rsplit('.', 1)[-1].lower() if '.' in self.original_name else ''

    @property
    def is_expired(self) -> bool:
        return utcnow() > self.expires_at
