from fastapi import APIRouter
from ..schemas.stories import StoryCreateIn, StoryActionIn, StoryReplyIn, StoryOut
from ..crud import create_story, list_active_stories, view_story, reply_to_story, delete_story
from typing import List

router = APIRouter()

@router.post('/create', response_model=StoryOut)
async def create(payload: StoryCreateIn):
    return await create_story(payload)

@router.get('/all', response_model=List[StoryOut])
async def list_all():
    return await list_active_stories()

@router.get('/user/{user_id}', response_model=List[StoryOut])
async def list_user(user_id: int):
    return await list_active_stories(user_id)

@router.post('/view', response_model=StoryOut)
async def view(payload: StoryActionIn):
    return await view_story(payload.story_id, payload.user_id)

@router.post('/reply', response_model=StoryOut)
async def reply(payload: StoryReplyIn):
    return await reply_to_story(payload.story_id, payload.user_id, payload.message)

@router.delete('/delete', response_model=StoryOut)
async def delete(payload: StoryActionIn):
    return await delete_story(payload.story_id, payload.user_id)
