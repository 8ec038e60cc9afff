from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from . import Base, utcnow

GROUP_ROLES = ('member', 'moderator', 'admin')

class Group(Base):
    __tablename__ = 'groups'
    id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False)
    description = Column(String(200), nullable=True)
    creator_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    # one live invite link at a time; generating a new one replaces it
    invite_code = Column(String(32), nullable=True, unique=True, index=True)
    invite_expires_at = Column(DateTime, nullable=True)
    invite_max_uses = Column(Integer, nullable=True)
    invite_uses = Column(Integer, default=0, nullable=False)

    members = relationship('GroupMember', back_populates='group', cascade='all, delete-orphan', lazy='selectin')


class GroupMember(Base):
    __tablename__ = 'group_members'
    __table_args__ = (UniqueConstraint('group_id', 'user_id', name='uix_group_member'),)
    id = Column(Integer, primary_key=True)
    group_id = Column(Integer, ForeignKey('groups.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    role = Column(String(20), default='member', nullable=False)
    added_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    joined_at = Column(DateTime, default=utcnow)

    group = relationship('Group', back_populates='members')
