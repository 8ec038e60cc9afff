from fastapi import APIRouter
from ..schemas.groups import GroupCreateIn, GroupMemberIn, GroupMemberRemoveIn, GroupRoleIn, GroupOut, InviteLinkIn, InviteLinkOut
from ..crud import (
    create_group, add_group_member, remove_group_member, update_group_role, generate_invite_link,
    get_group, list_user_groups,
)
from typing import List

router = APIRouter()

@router.post('/create', response_model=GroupOut)
async def create(payload: GroupCreateIn):
    return await create_group(payload)

@router.post('/addmember', response_model=GroupOut)
async def add_member(payload: GroupMemberIn):
    return await add_group_member(payload)

@router.post('/removemember', response_model=GroupOut)
async def remove_member(payload: GroupMemberRemoveIn):
    return await remove_group_member(payload.group_id, payload.user_id, payload.removed_by)

@router.put('/updaterole', response_model=GroupOut)
async def update_role(payload: GroupRoleIn):
    return await update_group_role(payload.group_id, payload.user_id, payload.new_role, payload.updated_by)

@router.post('/invitelink', response_model=InviteLinkOut)
async def invite_link(payload: InviteLinkIn):
    group = await generate_invite_link(payload.group_id, payload.generated_by, max_uses=payload.max_uses)
    return InviteLinkOut(code=group.invite_code, expires_at=group.invite_expires_at, max_uses=group.invite_max_uses)

@router.get('/user/{user_id}', response_model=List[GroupOut])
async def user_groups(user_id: int):
    return await list_user_groups(user_id)

@router.get('/{group_id}', response_model=GroupOut)
async def get(group_id: int):
    return await get_group(group_id)
