from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

class StoryContent(BaseModel):
    text: Optional[str] = None
    media: Optional[Dict[str, Any]] = None

class StoryCreateIn(BaseModel):
    user_id: int
    type: str
    content: StoryContent = Field(default_factory=StoryContent)
    style: Dict[str, Any] = Field(default_factory=dict)

class StoryActionIn(BaseModel):
    story_id: int
    user_id: int

class StoryReplyIn(StoryActionIn):
    message: str

class StoryViewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    viewed_at: Optional[datetime] = None

class StoryReplyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    message: str
    created_at: Optional[datetime] = None

class StoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: str
    content: Dict[str, Any]
    style: Dict[str, Any]
    created_at: Optional[datetime] = None
    expires_at: datetime
    is_active: bool
    view_count: int
    reply_count: int
    views: List[StoryViewOut]
    replies: List[StoryReplyOut]
