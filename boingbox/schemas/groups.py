from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

class GroupCreateIn(BaseModel):
    name: str = Field(max_length=50)
    description: Optional[str] = Field(default=None, max_length=200)
    creator_id: int
    members: List[int] = Field(default_factory=list)

class GroupMemberIn(BaseModel):
    group_id: int
    user_id: int
    added_by: int
    role: str = 'member'

class GroupMemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    role: str

class GroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    creator_id: int
    members: List[GroupMemberOut]

class GroupMemberRemoveIn(BaseModel):
    group_id: int
    user_id: int
    removed_by: int

class GroupRoleIn(BaseModel):
    group_id: int
    user_id: int
    new_role: str
    updated_by: int

class InviteLinkIn(BaseModel):
    group_id: int
    generated_by: int
    max_uses: int = 50

class InviteLinkOut(BaseModel):
    code: str
    expires_at: datetime
    max_uses: int
