from datetime import timedelta
import pytest
from boingbox import calls
from boingbox.errors import AuthorizationError, StateConflictError, ValidationError
from boingbox.models import utcnow


def _call(participants=(2, 3), initiator=1, group_id=None, **kwargs):
    ids = calls.participant_ids_for(initiator, participants, group_id)
    return calls.new_call('a' * 32, 'video', initiator, ids, group_id=group_id, **kwargs)


class TestCallTransitions:

    def test_direct_call_includes_initiator_once(self):
        call = _call(participants=(2, 1, 3, 2))
        assert [p.user_id for p in call.participants] == [1, 2, 3]
        assert call.status == 'ringing'
        assert all(not p.is_active for p in call.participants)

    def test_group_call_uses_participants_as_given(self):
        call = _call(participants=(2, 3), group_id=9)
        assert [p.user_id for p in call.participants] == [2, 3]

    def test_settings_merge_defaults(self):
        call = _call(settings={'quality': 'high'})
        assert call.settings['quality'] == 'high'
        assert call.settings['max_participants'] == 10
        assert call.settings['allow_screen_share'] is True

    def test_invalid_type(self):
        with pytest.raises(ValidationError):
            calls.new_call('a' * 32, 'fax', 1, [1, 2])

    def test_first_join_starts_the_call(self):
        call = _call()
        start = utcnow()
        calls.join(call, 2, now=start)
        assert call.status == 'ongoing'
        assert call.start_time == start
        calls.join(call, 3, now=start + timedelta(seconds=5))
        assert call.start_time == start
        assert call.active_participants_count == 2

    def test_last_leave_ends_with_duration(self):
        call = _call()
        start = utcnow()
        calls.join(call, 1, now=start)
        calls.join(call, 2, now=start)
        calls.leave(call, 1, now=start + timedelta(seconds=30))
        assert call.status == 'ongoing'
        calls.leave(call, 2, now=start + timedelta(seconds=95))
        assert call.status == 'ended'
        assert call.duration == 95
        assert call.participant_for(2).left_at == start + timedelta(seconds=95)

    def test_leave_before_anyone_joined_ends_with_zero_duration(self):
        call = _call()
        calls.leave(call, 2)
        assert call.status == 'ended'
        assert call.duration == 0

    def test_ended_call_rejects_join_even_for_outsiders(self):
        call = _call()
        calls.end(call, 1)
        with pytest.raises(StateConflictError):
            calls.join(call, 2)
        with pytest.raises(StateConflictError):
            calls.join(call, 99)
        with pytest.raises(StateConflictError):
            calls.leave(call, 2)

    def test_outsider_cannot_join(self):
        call = _call()
        with pytest.raises(AuthorizationError):
            calls.join(call, 99)

    def test_only_initiator_or_moderator_ends(self):
        call = _call(group_id=4)
        with pytest.raises(AuthorizationError):
            calls.end(call, 2)
        calls.end(call, 5, is_group_moderator=True)
        assert call.status == 'ended'

    def test_end_deactivates_everyone(self):
        call = _call()
        start = utcnow()
        calls.join(call, 2, now=start)
        calls.join(call, 3, now=start)
        calls.end(call, 1, now=start + timedelta(seconds=12))
        assert call.duration == 12
        assert call.active_participants_count == 0
        assert all(p.left_at is not None for p in call.participants)
        with pytest.raises(StateConflictError):
            calls.end(call, 1)

    def test_settings_are_initiator_only(self):
        call = _call()
        with pytest.raises(AuthorizationError):
            calls.update_settings(call, 2, {'quality': 'low'})
        calls.update_settings(call, 1, {'allow_recording': True})
        assert call.settings['allow_recording'] is True
        assert call.settings['quality'] == 'medium'

    def test_participant_status_whitelist(self):
        call = _call()
        calls.update_participant_status(call, 2, {'is_muted': True, 'is_video_off': True})
        participant = call.participant_for(2)
        assert participant.is_muted is True
        assert participant.is_video_off is True
        with pytest.raises(ValidationError):
            calls.update_participant_status(call, 2, {'is_active': True})
        with pytest.raises(AuthorizationError):
            calls.update_participant_status(call, 99, {'is_muted': True})

    def test_participant_status_rejects_non_flags(self):
        call = _call()
        for value in ('false', 1, None):
            with pytest.raises(ValidationError):
                calls.update_participant_status(call, 2, {'is_muted': value})
        assert call.participant_for(2).is_muted is False

    def test_duration_without_start(self):
        assert calls.call_duration(None, utcnow()) == 0


class TestCallsAPI:

    @pytest.mark.asyncio
    async def test_direct_call_scenario(self, client, make_user):
        alice = await make_user('alice')
        bob = await make_user('bob')

        res = await client.post('/api/calls/initiate', json={
            'initiator': alice['id'], 'participants': [bob['id']], 'type': 'video',
        })
        assert res.status_code == 200, res.text
        call = res.json()
        assert len(call['call_id']) == 32
        assert call['status'] == 'ringing'
        assert [p['user_id'] for p in call['participants']] == [alice['id'], bob['id']]
        call_id = call['call_id']

        res = await client.post('/api/calls/join', json={'call_id': call_id, 'user_id': alice['id']})
        assert res.json()['status'] == 'ongoing'
        res = await client.post('/api/calls/join', json={'call_id': call_id, 'user_id': bob['id']})
        assert res.json()['active_participants_count'] == 2

        res = await client.post('/api/calls/participant-status', json={
            'call_id': call_id, 'user_id': bob['id'], 'updates': {'is_muted': True},
        })
        assert res.status_code == 200
        bob_state = [p for p in res.json()['participants'] if p['user_id'] == bob['id']][0]
        assert bob_state['is_muted'] is True

        await client.post('/api/calls/leave', json={'call_id': call_id, 'user_id': alice['id']})
        res = await client.post('/api/calls/leave', json={'call_id': call_id, 'user_id': bob['id']})
        ended = res.json()
        assert ended['status'] == 'ended'
        assert ended['duration'] >= 0
        assert ended['end_time'] is not None

        res = await client.post('/api/calls/join', json={'call_id': call_id, 'user_id': bob['id']})
        assert res.status_code == 400

        res = await client.get(f"/api/calls/history/{bob['id']}")
        assert [c['call_id'] for c in res.json()] == [call_id]

    @pytest.mark.asyncio
    async def test_unknown_participant_is_rejected(self, client, make_user):
        alice = await make_user('alice')
        res = await client.post('/api/calls/initiate', json={'initiator': alice['id'], 'participants': [9999]})
        assert res.status_code == 400
        assert res.json()['detail'] == 'One or more participants not found'

    @pytest.mark.asyncio
    async def test_unknown_call(self, client):
        res = await client.get('/api/calls/' + 'f' * 32)
        assert res.status_code == 404
        res = await client.post('/api/calls/join', json={'call_id': 'f' * 32, 'user_id': 1})
        assert res.status_code == 404

    @pytest.mark.asyncio
    async def test_group_admin_can_end_member_cannot(self, client, make_user):
        owner = await make_user('owner')
        caller = await make_user('caller')
        member = await make_user('member')
        res = await client.post('/api/groups/create', json={
            'name': 'crew', 'creator_id': owner['id'], 'members': [caller['id'], member['id']],
        })
        assert res.status_code == 200, res.text
        group = res.json()

        res = await client.post('/api/calls/initiate', json={
            'initiator': caller['id'], 'participants': [caller['id'], member['id']], 'group_id': group['id'],
        })
        call_id = res.json()['call_id']

        res = await client.post('/api/calls/end', json={'call_id': call_id, 'user_id': member['id']})
        assert res.status_code == 403
        res = await client.post('/api/calls/end', json={'call_id': call_id, 'user_id': owner['id']})
        assert res.status_code == 200
        assert res.json()['status'] == 'ended'
        assert res.json()['duration'] == 0

    @pytest.mark.asyncio
    async def test_settings_by_non_initiator_forbidden(self, client, make_user):
        alice = await make_user('alice')
        bob = await make_user('bob')
        res = await client.post('/api/calls/initiate', json={'initiator': alice['id'], 'participants': [bob['id']]})
        call_id = res.json()['call_id']
        res = await client.post('/api/calls/settings', json={'call_id': call_id, 'user_id': bob['id'], 'settings': {'quality': 'low'}})
        assert res.status_code == 403
        res = await client.post('/api/calls/settings', json={'call_id': call_id, 'user_id': alice['id'], 'settings': {'quality': 'low'}})
        assert res.json()['settings']['quality'] == 'low'

    @pytest.mark.asyncio
    async def test_participant_status_needs_real_booleans(self, client, make_user):
        alice = await make_user('alice')
        bob = await make_user('bob')
        res = await client.post('/api/calls/initiate', json={'initiator': alice['id'], 'participants': [bob['id']]})
        call_id = res.json()['call_id']

        res = await client.post('/api/calls/participant-status', json={
            'call_id': call_id, 'user_id': bob['id'], 'updates': {'is_muted': 'false'},
        })
        assert res.status_code == 400
        res = await client.get(f'/api/calls/{call_id}')
        bob_state = [p for p in res.json()['participants'] if p['user_id'] == bob['id']][0]
        assert bob_state['is_muted'] is False

        res = await client.post('/api/calls/participant-status', json={
            'call_id': call_id, 'user_id': bob['id'], 'updates': {'is_muted': False, 'is_screen_sharing': True},
        })
        assert res.status_code == 200
