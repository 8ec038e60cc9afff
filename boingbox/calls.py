"""
Call state machine

    ringing -> ongoing -> ended
    ringing -> ended            (everyone left or the call was ended unanswered)

missed and declined are terminal states recorded for history only.
The functions below mutate a loaded Call in place and raise the errors in
errors.py; persistence is the caller's job (see crud.py).
"""
from datetime import datetime
from typing import Iterable, List, Optional
from .errors import AuthorizationError, StateConflictError, ValidationError
from .models import utcnow
from .models.calls import Call, CallParticipant, CALL_TYPES, DEFAULT_SETTINGS, TERMINAL_STATUSES

# Participant fields a participant may change on their own record
MUTABLE_PARTICIPANT_FIELDS = ('is_muted', 'is_video_off', 'is_screen_sharing')


def call_duration(start_time: Optional[datetime], end_time: datetime) -> int:
    """Whole seconds between start and end; 0 for a call that never started"""
    if start_time is None:
        return 0
    return max(0, int((end_time - start_time).total_seconds()))


def participant_ids_for(initiator_id: int, participants: Iterable[int], group_id: Optional[int] = None) -> List[int]:
    """
    Direct calls always include the initiator; group calls take the list as given.
    Duplicates are dropped keeping first occurrence.
    """
    ids = list(participants) if group_id else [initiator_id, *participants]
    return list(dict.fromkeys(ids))


def new_call(call_id: str, call_type: str, initiator_id: int, participant_ids: List[int],
             group_id: Optional[int] = None, settings: Optional[dict] = None) -> Call:
    if call_type not in CALL_TYPES:
        raise ValidationError(f"Invalid call type: {call_type}")
    if not initiator_id or not participant_ids:
        raise ValidationError("Initiator and participants are required")

    call = Call(
        call_id=call_id,
        type=call_type,
        initiator_id=initiator_id,
        group_id=group_id,
        status='ringing',
        settings={**DEFAULT_SETTINGS, **(settings or {})},
        recording={'is_recording': False},
    )
    call.participants = [
        CallParticipant(
            user_id=user_id,
            is_active=False,
            is_muted=False,
            is_video_off=False,
            is_screen_sharing=False,
        )
        for user_id in participant_ids
    ]
    return call


def _ensure_open(call: Call):
    if call.status in TERMINAL_STATUSES:
        raise StateConflictError("Call has already ended")


def _participant(call: Call, user_id: int) -> CallParticipant:
    participant = call.participant_for(user_id)
    if participant is None:
        raise AuthorizationError("You are not a participant in this call")
    return participant


def _finish(call: Call, now: datetime):
    call.status = 'ended'
    call.end_time = now
    call.duration = call_duration(call.start_time, now)


def join(call: Call, user_id: int, now: Optional[datetime] = None) -> Call:
    now = now or utcnow()
    _ensure_open(call)
    participant = _participant(call, user_id)

    first_active = call.active_participants_count == 0
    participant.is_active = True
    participant.joined_at = now
    participant.left_at = None

    if call.status == 'ringing' and first_active:
        call.status = 'ongoing'
        call.start_time = now
    return call


def leave(call: Call, user_id: int, now: Optional[datetime] = None) -> Call:
    now = now or utcnow()
    _ensure_open(call)
    participant = _participant(call, user_id)

    participant.is_active = False
    participant.left_at = now

    if call.active_participants_count == 0:
        _finish(call, now)
    return call


def end(call: Call, user_id: int, is_group_moderator: bool = False, now: Optional[datetime] = None) -> Call:
    """Force the call to ended; only the initiator or a group admin/moderator may do this"""
    now = now or utcnow()
    if call.initiator_id != user_id and not is_group_moderator:
        raise AuthorizationError("You don't have permission to end this call")
    _ensure_open(call)

    _finish(call, now)
    for participant in call.participants:
        participant.is_active = False
        if participant.left_at is None:
            participant.left_at = now
    return call


def update_settings(call: Call, user_id: int, settings: dict) -> Call:
    if call.initiator_id != user_id:
        raise AuthorizationError("Only the call initiator can update settings")
    if not settings:
        raise ValidationError("Settings are required")
    call.settings.update(settings)
    return call


def update_participant_status(call: Call, user_id: int, updates: dict) -> Call:
    if not updates:
        raise ValidationError("Updates are required")
    unknown = sorted(set(updates) - set(MUTABLE_PARTICIPANT_FIELDS))
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")
    not_flags = sorted(field for field, value in updates.items() if not isinstance(value, bool))
    if not_flags:
        raise ValidationError(f"Fields must be true or false: {', '.join(not_flags)}")
    participant = _participant(call, user_id)
    for field, value in updates.items():
        setattr(participant, field, value)
    return call
