from datetime import timedelta
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship
from . import Base, utcnow

STORY_TYPES = ('text', 'image', 'video')
STORY_TTL = timedelta(hours=24)


def _default_expiry():
    return utcnow() + STORY_TTL


class Story(Base):
    __tablename__ = 'stories'
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), index=True, nullable=False)
    type = Column(String(10), nullable=False)
    content = Column(JSON, nullable=False, default=dict)
    style = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=utcnow)
    expires_at = Column(DateTime, default=_default_expiry, nullable=False, index=True)
    is_active = Column(Boolean, default=True, index=True)

    views = relationship('StoryView', cascade='all, delete-orphan', order_by='StoryView.id', lazy='selectin')
    replies = relationship('StoryReply', cascade='all, delete-orphan', order_by='StoryReply.id', lazy='selectin')

    @property
    def is_expired(self) -> bool:
        return utcnow() > self.expires_at

    @property
    def view_count(self) -> int:
        return len(self.views)

    @property
    def reply_count(self) -> int:
        return len(self.replies)


class StoryView(Base):
    __tablename__ = 'story_views'
    id = Column(Integer, primary_key=True)
    story_id = Column(Integer, ForeignKey('stories.id', ondelete='CASCADE'), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    viewed_at = Column(DateTime, default=utcnow)


class StoryReply(Base):
    __tablename__ = 'story_replies'
    id = Column(Integer, primary_key=True)
    story_id = Column(Integer, ForeignKey('stories.id', ondelete='CASCADE'), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)
