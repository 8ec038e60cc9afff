from fastapi import APIRouter, HTTPException, Form
from ..schemas.users import RegisterIn, TokenOut, UserOut, AvatarIn, AvatarOut
from ..crud import create_user, authenticate_user, get_user_by_id, list_other_users, set_avatar
from typing import List

router = APIRouter()


@router.post('/register', response_model=UserOut)
async def register(payload: RegisterIn):
    return await create_user(payload)


@router.post('/login', response_model=TokenOut)
async def login(username: str = Form(...), password: str = Form(...)):
    token = await authenticate_user(username, password)
    if not token:
        raise HTTPException(status_code=401, detail='Invalid credentials')
    return token


@router.post('/setavatar/{user_id}', response_model=AvatarOut)
async def set_user_avatar(user_id: int, payload: AvatarIn):
    user = await set_avatar(user_id, payload.image)
    return AvatarOut(is_set=user.is_avatar_image_set, image=user.avatar_image)


@router.get('/all/{user_id}', response_model=List[UserOut])
async def all_users(user_id: int):
    # contact list for the chat sidebar: everyone but the caller
    return await list_other_users(user_id)


@router.get('/{user_id}', response_model=UserOut)
async def get_user(user_id: int):
    user = await get_user_by_id(user_id)
    if not user:
        raise HTTPException(404, 'User not found')
    return user
