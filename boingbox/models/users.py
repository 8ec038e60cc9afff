from sqlalchemy import Column, Integer, String, Boolean, DateTime
from . import Base, utcnow

class User(Base):
    __tablename__ = 'users'
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(150), unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    avatar_image = Column(String, nullable=True)
    is_avatar_image_set = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)
