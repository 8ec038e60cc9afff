from datetime import datetime
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from .common import Pagination

class UploadUrlIn(BaseModel):
    user_id: int
    file_name: str
    file_size: int
    mime_type: str
    file_type: str

class UploadUrlOut(BaseModel):
    file_id: str
    upload_url: str
    upload_token: str
    expires_at: datetime

class UploadOut(BaseModel):
    file_id: str
    status: str
    estimated_time: int

class MediaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    file_id: str
    original_name: str
    mime_type: str
    size: int
    type: str
    uploader_id: int
    status: str
    urls: Dict[str, Any]
    metadata: Dict[str, Any] = Field(validation_alias=AliasChoices('file_metadata', 'metadata'))
    processing: Dict[str, Any]
    permissions: Dict[str, Any]
    expires_at: datetime
    created_at: Optional[datetime] = None

class SignedUrlOut(BaseModel):
    url: str
    expires_at: datetime
    type: str
    size: int

class MediaListOut(BaseModel):
    media: List[MediaOut]
    pagination: Pagination
