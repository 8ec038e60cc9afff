from fastapi import APIRouter
from ..schemas.calls import CallInitiateIn, CallActionIn, CallSettingsIn, ParticipantStatusIn, CallOut
from ..crud import (
    initiate_call,
    join_call,
    leave_call,
    end_call,
    update_call_settings,
    update_participant_status,
    get_call_history,
    get_call,
)
from ..core import CALL_TRANSITIONS
from ..kafka_producer import CALL_EVENTS_TOPIC, publish_event
from typing import List

router = APIRouter()


async def _record(action: str, call, user_id: int):
    """Count the transition and emit it on the call-events topic"""
    CALL_TRANSITIONS.labels(action=action).inc()
    await publish_event(CALL_EVENTS_TOPIC, f'call-{action}', {
        'call_id': call.call_id,
        'user_id': user_id,
        'status': call.status,
        'type': call.type,
    })
    return call


@router.post('/initiate', response_model=CallOut)
async def initiate(payload: CallInitiateIn):
    call = await initiate_call(payload)
    return await _record('initiated', call, payload.initiator)


@router.post('/join', response_model=CallOut)
async def join(payload: CallActionIn):
    call = await join_call(payload.call_id, payload.user_id)
    return await _record('joined', call, payload.user_id)


@router.post('/leave', response_model=CallOut)
async def leave(payload: CallActionIn):
    call = await leave_call(payload.call_id, payload.user_id)
    return await _record('left', call, payload.user_id)


@router.post('/end', response_model=CallOut)
async def end(payload: CallActionIn):
    call = await end_call(payload.call_id, payload.user_id)
    return await _record('ended', call, payload.user_id)


@router.post('/settings', response_model=CallOut)
async def settings(payload: CallSettingsIn):
    call = await update_call_settings(payload.call_id, payload.user_id, payload.settings)
    return await _record('settings-updated', call, payload.user_id)


@router.post('/participant-status', response_model=CallOut)
async def participant_status(payload: ParticipantStatusIn):
    call = await update_participant_status(payload.call_id, payload.user_id, payload.updates)
    return await _record('participant-updated', call, payload.user_id)


@router.get('/history/{user_id}', response_model=List[CallOut])
async def history(user_id: int, page: int = 1, limit: int = 20):
    return await get_call_history(user_id, page=page, limit=limit)


@router.get('/{call_id}', response_model=CallOut)
async def get(call_id: str):
    return await get_call(call_id)
