from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON
from . import Base, utcnow

class Message(Base):
    __tablename__ = 'messages'
    id = Column(Integer, primary_key=True)
    sender_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), index=True, nullable=False)
    # null for group messages
    recipient_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), index=True, nullable=True)
    group_id = Column(Integer, ForeignKey('groups.id', ondelete='CASCADE'), index=True, nullable=True)
    chat_type = Column(String(10), default='private', nullable=False)
    type = Column(String(20), default='text', nullable=False)
    text = Column(Text, nullable=True)
    media = Column(JSON, nullable=True)
    reply_to = Column(Integer, ForeignKey('messages.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    is_edited = Column(Boolean, default=False, nullable=False)
    edited_at = Column(DateTime, nullable=True)
    original_text = Column(Text, nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(DateTime, nullable=True)
    deleted_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    # [{user_id, emoji, created_at}], one entry per user; reassigned on change
    reactions = Column(JSON, default=list, nullable=False)
    # [{user_id, read_at}]
    read_by = Column(JSON, default=list, nullable=False)
