from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.ext.mutable import MutableDict
from sqlalchemy.orm import relationship
from . import Base, utcnow

CALL_TYPES = ('voice', 'video', 'screen-share')
CALL_STATUSES = ('ringing', 'ongoing', 'ended', 'missed', 'declined')
TERMINAL_STATUSES = ('ended', 'missed', 'declined')

DEFAULT_SETTINGS = {
    'max_participants': 10,
    'allow_screen_share': True,
    'allow_recording': False,
    'quality': 'medium',
}

class Call(Base):
    __tablename__ = 'calls'
    id = Column(Integer, primary_key=True)
    call_id = Column(String(32), unique=True, index=True, nullable=False)
    type = Column(String(20), nullable=False)
    initiator_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), index=True, nullable=False)
    group_id = Column(Integer, ForeignKey('groups.id', ondelete='SET NULL'), nullable=True)
    status = Column(String(20), default='ringing', index=True, nullable=False)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    duration = Column(Integer, nullable=True)  # seconds
    settings = Column(MutableDict.as_mutable(JSON), nullable=False, default=lambda: dict(DEFAULT_SETTINGS))
    recording = Column(MutableDict.as_mutable(JSON), nullable=False, default=lambda: {'is_recording': False})
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    participants = relationship(
        'CallParticipant',
        back_populates='call',
        cascade='all, delete-orphan',
        order_by='CallParticipant.id',
        lazy='selectin',
    )

    @property
    def active_participants_count(self) -> int:
        return sum(1 for p in self.participants if p.is_active)

    def participant_for(self, user_id):
        for p in self.participants:
            if p.user_id == user_id:
                return p
        return None


class CallParticipant(Base):
    __tablename__ = 'call_participants'
    id = Column(Integer, primary_key=True)
    call_pk = Column(Integer, ForeignKey('calls.id', ondelete='CASCADE'), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), index=True, nullable=False)
    joined_at = Column(DateTime, nullable=True)
    left_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=False, nullable=False)
    is_muted = Column(Boolean, default=False, nullable=False)
    is_video_off = Column(Boolean, default=False, nullable=False)
    is_screen_sharing = Column(Boolean, default=False, nullable=False)

    call = relationship('Call', back_populates='participants')
