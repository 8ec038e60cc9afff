from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional

class RegisterIn(BaseModel):
    username: str
    email: EmailStr
    password: str

class LoginIn(BaseModel):
    username: str
    password: str

class TokenOut(BaseModel):
    access_token: str
    token_type: str = 'bearer'

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: EmailStr
    avatar_image: Optional[str] = None
    is_avatar_image_set: bool = False

class AvatarIn(BaseModel):
    image: str = Field(min_length=1)

class AvatarOut(BaseModel):
    is_set: bool
    image: Optional[str] = None
