from datetime import datetime
from pydantic import BaseModel, ConfigDict, StrictBool
from typing import Any, Dict, List, Optional

class CallInitiateIn(BaseModel):
    initiator: int
    participants: List[int]
    type: str = 'voice'
    group_id: Optional[int] = None
    settings: Optional[Dict[str, Any]] = None

class CallActionIn(BaseModel):
    call_id: str
    user_id: int

class CallSettingsIn(CallActionIn):
    settings: Dict[str, Any]

class ParticipantStatusIn(CallActionIn):
    updates: Dict[str, StrictBool]

class ParticipantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    joined_at: Optional[datetime] = None
    left_at: Optional[datetime] = None
    is_active: bool
    is_muted: bool
    is_video_off: bool
    is_screen_sharing: bool

class CallOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    call_id: str
    type: str
    initiator_id: int
    group_id: Optional[int] = None
    status: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    settings: Dict[str, Any]
    recording: Dict[str, Any]
    participants: List[ParticipantOut]
    active_participants_count: int
    created_at: Optional[datetime] = None
