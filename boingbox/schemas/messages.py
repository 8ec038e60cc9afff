from datetime import datetime
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

class MessageIn(BaseModel):
    sender_id: int
    recipient_id: Optional[int] = None
    group_id: Optional[int] = None
    type: str = 'text'
    text: Optional[str] = None
    media: Optional[Dict[str, Any]] = None
    reply_to: Optional[int] = None

class ConversationIn(BaseModel):
    user_id: int
    peer_id: Optional[int] = None
    group_id: Optional[int] = None
    page: int = 1
    limit: int = 50

class MessageEditIn(BaseModel):
    message_id: int
    new_text: str
    edited_by: int

class MessageDeleteIn(BaseModel):
    message_id: int
    deleted_by: int

class ReactionIn(BaseModel):
    message_id: int
    user_id: int
    emoji: str = Field(max_length=16)

class MarkReadIn(BaseModel):
    message_id: int
    user_id: int

class ReactionOut(BaseModel):
    user_id: int
    emoji: str
    created_at: datetime

class ReadReceiptOut(BaseModel):
    user_id: int
    read_at: datetime

class MessageOut(BaseModel):
    id: int
    type: str
    text: Optional[str] = None
    media: Optional[Dict[str, Any]] = None
    sender_id: int
    from_self: bool
    chat_type: str
    group_id: Optional[int] = None
    reply_to: Optional[int] = None
    timestamp: Optional[datetime] = None
    is_edited: bool = False
    edited_at: Optional[datetime] = None
    reactions: List[ReactionOut] = []
    read_by: List[ReadReceiptOut] = []
