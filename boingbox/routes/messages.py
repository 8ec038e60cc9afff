from fastapi import APIRouter, HTTPException
from ..schemas.common import ActionOkOut
from ..schemas.messages import (
    MessageIn, MessageOut, ConversationIn, MessageEditIn, MessageDeleteIn, ReactionIn, MarkReadIn,
)
from ..crud import add_message, list_messages, edit_message, delete_message, add_reaction, mark_message_read
from ..cache import check_rate_limit
from typing import List

router = APIRouter()

def _to_out(m, user_id: int) -> MessageOut:
    return MessageOut(
        id=m.id,
        type=m.type,
        text=m.text,
        media=m.media,
        sender_id=m.sender_id,
        from_self=m.sender_id == user_id,
        chat_type=m.chat_type,
        group_id=m.group_id,
        reply_to=m.reply_to,
        timestamp=m.created_at,
        is_edited=m.is_edited,
        edited_at=m.edited_at,
        reactions=m.reactions or [],
        read_by=m.read_by or [],
    )

@router.post('/addmsg', response_model=MessageOut)
async def send(payload: MessageIn):
    # max 100 messages per hour
    if not await check_rate_limit(payload.sender_id, "send_message", limit=100, window=3600):
        raise HTTPException(429, "Rate limit exceeded. Too many messages.")
    m = await add_message(payload)
    return _to_out(m, payload.sender_id)

@router.post('/getmsg', response_model=List[MessageOut])
async def conversation(payload: ConversationIn):
    messages = await list_messages(payload.user_id, peer_id=payload.peer_id, group_id=payload.group_id,
                                   page=payload.page, limit=payload.limit)
    return [_to_out(m, payload.user_id) for m in messages]

@router.put('/editmsg', response_model=MessageOut)
async def edit(payload: MessageEditIn):
    m = await edit_message(payload.message_id, payload.new_text, payload.edited_by)
    return _to_out(m, payload.edited_by)

@router.delete('/deletemsg', response_model=ActionOkOut)
async def delete(payload: MessageDeleteIn):
    await delete_message(payload.message_id, payload.deleted_by)
    return {'ok': True, 'message': 'Message deleted successfully'}

@router.post('/reaction', response_model=MessageOut)
async def react(payload: ReactionIn):
    m = await add_reaction(payload.message_id, payload.user_id, payload.emoji)
    return _to_out(m, payload.user_id)

@router.post('/markread', response_model=MessageOut)
async def mark_read(payload: MarkReadIn):
    m = await mark_message_read(payload.message_id, payload.user_id)
    return _to_out(m, payload.user_id)
