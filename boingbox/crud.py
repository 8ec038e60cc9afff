from .models import AsyncSessionLocal, utcnow
from .models.users import User
from .models.groups import Group, GroupMember, GROUP_ROLES
from .models.messages import Message
from .models.calls import Call, CallParticipant, TERMINAL_STATUSES
from .models.media import Media, MEDIA_TYPES
from .models.stories import Story, StoryView, StoryReply, STORY_TYPES
from . import calls
from .auth import create_access_token, generate_id, generate_upload_token, tokens_match
from .errors import AuthorizationError, NotFoundError, StateConflictError, ValidationError
from .file_storage import file_storage
from . import storage
from passlib.context import CryptContext
from sqlalchemy import select, func
from datetime import timedelta
import secrets
import logging

logger = logging.getLogger(__name__)

pwd_ctx = CryptContext(schemes=['bcrypt'], deprecated='auto')

MB = 1024 * 1024
MAX_UPLOAD_SIZES = {
    'image': 10 * MB,
    'video': 100 * MB,
    'audio': 50 * MB,
    'document': 25 * MB,
}
UPLOAD_TOKEN_TTL = timedelta(hours=1)
INVITE_LINK_TTL = timedelta(days=30)

# users
async def create_user(payload):
    async with AsyncSessionLocal() as session:
        q = await session.execute(select(User).where((User.username == payload.username) | (User.email == payload.email)))
        if q.scalars().first():
            raise ValidationError("Username or email already used")
        user = User(
            username=payload.username,
            email=payload.email,
            hashed_password=pwd_ctx.hash(payload.password),
            is_avatar_image_set=False,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user

async def authenticate_user(username, password):
    async with AsyncSessionLocal() as session:
        q = await session.execute(select(User).where(User.username == username))
        user = q.scalars().first()
        if not user or not pwd_ctx.verify(password, user.hashed_password):
            return None
        access = create_access_token({'id': user.id, 'username': user.username})
        return {'access_token': access, 'token_type': 'bearer'}

async def get_user_by_id(user_id: int):
    async with AsyncSessionLocal() as session:
        q = await session.execute(select(User).where(User.id == user_id))
        return q.scalars().first()

async def list_other_users(user_id: int):
    async with AsyncSessionLocal() as session:
        q = await session.execute(select(User).where(User.id != user_id).order_by(User.username))
        return q.scalars().all()

async def set_avatar(user_id: int, image: str):
    async with AsyncSessionLocal() as session:
        user = await _require_user(session, user_id)
        user.avatar_image = image
        user.is_avatar_image_set = True
        await session.commit()
        return user

async def _existing_user_ids(session, user_ids):
    q = await session.execute(select(User.id).where(User.id.in_(list(user_ids))))
    return set(q.scalars().all())

async def _require_user(session, user_id: int):
    user = await session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user

# groups
async def create_group(payload):
    member_ids = list(dict.fromkeys([payload.creator_id, *payload.members]))
    async with AsyncSessionLocal() as session:
        if await _existing_user_ids(session, member_ids) != set(member_ids):
            raise ValidationError("One or more members not found")
        group = Group(name=payload.name, description=payload.description, creator_id=payload.creator_id)
        # the creator is always an admin
        group.members = [
            GroupMember(user_id=user_id, role='admin' if user_id == payload.creator_id else 'member', added_by=payload.creator_id)
            for user_id in member_ids
        ]
        session.add(group)
        await session.commit()
        return group

async def _get_group(session, group_id: int) -> Group:
    group = await session.get(Group, group_id)
    if not group:
        raise NotFoundError("Group not found")
    return group

def _membership(group: Group, user_id: int):
    return next((m for m in group.members if m.user_id == user_id), None)

async def get_group(group_id: int):
    async with AsyncSessionLocal() as session:
        return await _get_group(session, group_id)

async def list_user_groups(user_id: int):
    async with AsyncSessionLocal() as session:
        q = await session.execute(
            select(Group).join(GroupMember, GroupMember.group_id == Group.id)
            .where(GroupMember.user_id == user_id)
            .order_by(Group.created_at.desc(), Group.id.desc())
        )
        return q.scalars().unique().all()

async def get_group_role(session, group_id: int, user_id: int):
    q = await session.execute(select(GroupMember.role).where(GroupMember.group_id == group_id, GroupMember.user_id == user_id))
    return q.scalars().first()

async def add_group_member(payload):
    if payload.role not in GROUP_ROLES:
        raise ValidationError(f"Invalid role: {payload.role}")
    async with AsyncSessionLocal() as session:
        group = await _get_group(session, payload.group_id)
        if await get_group_role(session, group.id, payload.added_by) not in ('admin', 'moderator'):
            raise AuthorizationError("Only admins and moderators can add members")
        await _require_user(session, payload.user_id)
        if _membership(group, payload.user_id):
            raise StateConflictError("User is already a member")
        group.members.append(GroupMember(user_id=payload.user_id, role=payload.role, added_by=payload.added_by))
        await session.commit()
        return group

async def remove_group_member(group_id: int, user_id: int, removed_by: int):
    """Admins remove anyone but the creator; every member may leave"""
    async with AsyncSessionLocal() as session:
        group = await _get_group(session, group_id)
        member = _membership(group, user_id)
        if not member:
            raise ValidationError("User is not a member of this group")
        remover = _membership(group, removed_by)
        if not remover:
            raise AuthorizationError("You are not a member of this group")
        if removed_by != user_id:
            if remover.role != 'admin':
                raise AuthorizationError("Only admins can remove other members")
            if user_id == group.creator_id:
                raise AuthorizationError("The group creator cannot be removed")
        group.members.remove(member)
        await session.commit()
        logger.info(f"User {user_id} removed from group {group_id} by {removed_by}")
        return group

async def update_group_role(group_id: int, user_id: int, new_role: str, updated_by: int):
    if new_role not in GROUP_ROLES:
        raise ValidationError("Invalid role. Must be member, moderator, or admin")
    async with AsyncSessionLocal() as session:
        group = await _get_group(session, group_id)
        member = _membership(group, user_id)
        if not member:
            raise ValidationError("User is not a member of this group")
        updater = _membership(group, updated_by)
        if not updater or updater.role != 'admin':
            raise AuthorizationError("Only admins can change member roles")
        if user_id == group.creator_id and new_role != 'admin':
            raise ValidationError("The group creator must stay an admin")
        member.role = new_role
        await session.commit()
        return group

async def generate_invite_link(group_id: int, generated_by: int, max_uses: int = 50):
    if max_uses < 1:
        raise ValidationError("Max uses must be at least 1")
    async with AsyncSessionLocal() as session:
        group = await _get_group(session, group_id)
        generator = _membership(group, generated_by)
        if not generator or generator.role != 'admin':
            raise AuthorizationError("Only admins can generate invite links")
        group.invite_code = secrets.token_hex(8)
        group.invite_expires_at = utcnow() + INVITE_LINK_TTL
        group.invite_max_uses = max_uses
        group.invite_uses = 0
        await session.commit()
        return group

# messaging
async def add_message(payload):
    if not payload.recipient_id and not payload.group_id:
        raise ValidationError("Sender ID and either recipient ID or group ID are required")
    if payload.type == 'text' and not payload.text:
        raise ValidationError("Message content is required for text messages")
    if payload.type != 'text' and not payload.media:
        raise ValidationError("Media content is required for non-text messages")
    async with AsyncSessionLocal() as session:
        m = Message(
            sender_id=payload.sender_id,
            recipient_id=None if payload.group_id else payload.recipient_id,
            group_id=payload.group_id,
            chat_type='group' if payload.group_id else 'private',
            type=payload.type,
            text=payload.text if payload.type == 'text' else None,
            media=payload.media if payload.type != 'text' else None,
            reply_to=payload.reply_to,
            is_edited=False,
            is_deleted=False,
            reactions=[],
            read_by=[],
        )
        session.add(m)
        await session.commit()
        await session.refresh(m)
        return m

async def list_messages(user_id: int, peer_id: int = None, group_id: int = None, page: int = 1, limit: int = 50):
    """Newest page first from the store, returned oldest-first"""
    if group_id:
        where = Message.group_id == group_id
    elif peer_id:
        where = (Message.chat_type == 'private') & (
            ((Message.sender_id == user_id) & (Message.recipient_id == peer_id)) |
            ((Message.sender_id == peer_id) & (Message.recipient_id == user_id))
        )
    else:
        raise ValidationError("Either peer ID (for private) or group ID (for group) is required")
    async with AsyncSessionLocal() as session:
        q = select(Message).where(where, Message.is_deleted.is_(False)).order_by(Message.created_at.desc(), Message.id.desc())
        q = q.offset((max(page, 1) - 1) * limit).limit(limit)
        res = await session.execute(q)
        return list(reversed(res.scalars().all()))

async def _get_live_message(session, message_id: int) -> Message:
    message = await session.get(Message, message_id)
    if not message or message.is_deleted:
        raise NotFoundError("Message not found")
    return message

async def edit_message(message_id: int, new_text: str, edited_by: int):
    if not new_text:
        raise ValidationError("New text is required")
    async with AsyncSessionLocal() as session:
        message = await _get_live_message(session, message_id)
        if message.sender_id != edited_by:
            raise AuthorizationError("You can only edit your own messages")
        if message.type != 'text':
            raise ValidationError("Only text messages can be edited")
        # the first edit keeps what was originally sent
        if not message.is_edited:
            message.original_text = message.text
        message.text = new_text
        message.is_edited = True
        message.edited_at = utcnow()
        await session.commit()
        return message

async def delete_message(message_id: int, deleted_by: int):
    async with AsyncSessionLocal() as session:
        message = await _get_live_message(session, message_id)
        if message.sender_id != deleted_by:
            raise AuthorizationError("You can only delete your own messages")
        message.is_deleted = True
        message.deleted_at = utcnow()
        message.deleted_by = deleted_by
        await session.commit()
        return message

async def add_reaction(message_id: int, user_id: int, emoji: str):
    """Set user_id's reaction, replacing any earlier one"""
    if not emoji:
        raise ValidationError("Emoji is required")
    async with AsyncSessionLocal() as session:
        message = await _get_live_message(session, message_id)
        await _require_user(session, user_id)
        reactions = [r for r in message.reactions or [] if r['user_id'] != user_id]
        reactions.append({'user_id': user_id, 'emoji': emoji, 'created_at': utcnow().isoformat()})
        message.reactions = reactions
        await session.commit()
        return message

async def mark_message_read(message_id: int, user_id: int):
    async with AsyncSessionLocal() as session:
        message = await _get_live_message(session, message_id)
        read_by = message.read_by or []
        if not any(r['user_id'] == user_id for r in read_by):
            await _require_user(session, user_id)
            message.read_by = [*read_by, {'user_id': user_id, 'read_at': utcnow().isoformat()}]
            await session.commit()
        return message

# calls
async def _get_call(session, call_id: str) -> Call:
    q = await session.execute(select(Call).where(Call.call_id == call_id))
    call = q.scalars().first()
    if not call:
        raise NotFoundError("Call not found")
    return call

async def get_call(call_id: str):
    async with AsyncSessionLocal() as session:
        return await _get_call(session, call_id)

async def initiate_call(payload):
    if not payload.initiator or not payload.participants:
        raise ValidationError("Initiator and participants are required")
    participant_ids = calls.participant_ids_for(payload.initiator, payload.participants, payload.group_id)
    async with AsyncSessionLocal() as session:
        if await _existing_user_ids(session, participant_ids) != set(participant_ids):
            raise ValidationError("One or more participants not found")
        if payload.group_id and not await session.get(Group, payload.group_id):
            raise NotFoundError("Group not found")
        call = calls.new_call(generate_id(), payload.type, payload.initiator, participant_ids,
                              group_id=payload.group_id, settings=payload.settings)
        session.add(call)
        await session.commit()
        return call

async def join_call(call_id: str, user_id: int):
    async with AsyncSessionLocal() as session:
        call = await _get_call(session, call_id)
        calls.join(call, user_id)
        await session.commit()
        return call

async def leave_call(call_id: str, user_id: int):
    async with AsyncSessionLocal() as session:
        call = await _get_call(session, call_id)
        calls.leave(call, user_id)
        await session.commit()
        return call

async def end_call(call_id: str, user_id: int):
    async with AsyncSessionLocal() as session:
        call = await _get_call(session, call_id)
        is_moderator = False
        if call.group_id and call.initiator_id != user_id:
            is_moderator = await get_group_role(session, call.group_id, user_id) in ('admin', 'moderator')
        calls.end(call, user_id, is_group_moderator=is_moderator)
        await session.commit()
        return call

async def update_call_settings(call_id: str, user_id: int, settings: dict):
    async with AsyncSessionLocal() as session:
        call = await _get_call(session, call_id)
        calls.update_settings(call, user_id, settings)
        await session.commit()
        return call

async def update_participant_status(call_id: str, user_id: int, updates: dict):
    async with AsyncSessionLocal() as session:
        call = await _get_call(session, call_id)
        calls.update_participant_status(call, user_id, updates)
        await session.commit()
        return call

async def get_call_history(user_id: int, page: int = 1, limit: int = 20):
    async with AsyncSessionLocal() as session:
        q = (
            select(Call)
            .join(CallParticipant, CallParticipant.call_pk == Call.id)
            .where(CallParticipant.user_id == user_id, Call.status.in_(TERMINAL_STATUSES))
            .order_by(Call.created_at.desc(), Call.id.desc())
            .offset((max(page, 1) - 1) * limit)
            .limit(limit)
        )
        res = await session.execute(q)
        return res.scalars().unique().all()

# media
def validate_upload_request(file_type: str, file_size: int):
    if file_type not in MEDIA_TYPES:
        raise ValidationError("Invalid file type")
    if file_size <= 0:
        raise ValidationError("All fields are required")
    if file_size > MAX_UPLOAD_SIZES[file_type]:
        raise ValidationError(f"File size exceeds limit for {file_type} files")

async def create_upload(payload):
    if not payload.file_name or not payload.mime_type:
        raise ValidationError("All fields are required")
    validate_upload_request(payload.file_type, payload.file_size)
    async with AsyncSessionLocal() as session:
        await _require_user(session, payload.user_id)
        media = Media(
            file_id=generate_id(),
            original_name=payload.file_name,
            mime_type=payload.mime_type,
            size=payload.file_size,
            type=payload.file_type,
            uploader_id=payload.user_id,
            status='uploading',
            upload_token=generate_upload_token(),
            upload_expires_at=utcnow() + UPLOAD_TOKEN_TTL,
        )
        session.add(media)
        await session.commit()
        return media

async def submit_upload(file_id: str, upload_token: str, filename: str, content: bytes):
    """Store the uploaded bytes and move the record to processing; returns (media, path)"""
    if not upload_token:
        raise ValidationError("File ID and upload token are required")
    async with AsyncSessionLocal() as session:
        media = await _get_media(session, file_id)
        if media.status != 'uploading':
            raise StateConflictError("File is not in uploading state")
        if not tokens_match(media.upload_token, upload_token):
            raise AuthorizationError("Invalid upload token")
        if media.upload_expires_at and utcnow() > media.upload_expires_at:
            raise AuthorizationError("Upload token expired")
        if not content:
            raise ValidationError("No file uploaded")
        if len(content) > MAX_UPLOAD_SIZES[media.type]:
            raise ValidationError(f"File size exceeds limit for {media.type} files")

        path, url = await file_storage.save_upload(media.file_id, filename or media.original_name, content)
        if storage.s3_enabled():
            await storage.upload_object(storage.media_key(media.file_id, url.rsplit('/', 1)[-1]), content, media.mime_type)

        media.status = 'processing'
        media.storage_path = path
        media.upload_token = None
        media.urls['original'] = url
        media.processing['uploaded_at'] = utcnow().isoformat()
        await session.commit()
        return media, path

async def _get_media(session, file_id: str) -> Media:
    q = await session.execute(select(Media).where(Media.file_id == file_id))
    media = q.scalars().first()
    if not media:
        raise NotFoundError("Media not found")
    return media

async def mark_media_failed(file_id: str, error: str):
    """Close out a record that left uploading but never reached a worker"""
    async with AsyncSessionLocal() as session:
        media = await _get_media(session, file_id)
        if media.status != 'processing':
            return media
        media.status = 'failed'
        media.processing['error'] = error
        await session.commit()
        return media

async def get_media(file_id: str):
    async with AsyncSessionLocal() as session:
        return await _get_media(session, file_id)

async def can_access_media(media: Media, user_id: int) -> bool:
    permissions = media.permissions or {}
    if permissions.get('public') or media.uploader_id == user_id:
        return True
    if user_id in permissions.get('allowed_users', []):
        return True
    groups = permissions.get('allowed_groups', [])
    if not groups or user_id is None:
        return False
    async with AsyncSessionLocal() as session:
        q = await session.execute(select(GroupMember.id).where(GroupMember.group_id.in_(groups), GroupMember.user_id == user_id))
        return q.scalars().first() is not None

async def list_user_media(user_id: int, page: int = 1, limit: int = 20, media_type: str = None):
    where = [Media.uploader_id == user_id]
    if media_type:
        where.append(Media.type == media_type)
    async with AsyncSessionLocal() as session:
        total = (await session.execute(select(func.count(Media.id)).where(*where))).scalar_one()
        q = (
            select(Media).where(*where)
            .order_by(Media.created_at.desc(), Media.id.desc())
            .offset((max(page, 1) - 1) * limit)
            .limit(limit)
        )
        res = await session.execute(q)
        return res.scalars().all(), total

async def delete_media(file_id: str, user_id: int):
    async with AsyncSessionLocal() as session:
        media = await _get_media(session, file_id)
        if media.uploader_id != user_id:
            raise AuthorizationError("You can only delete your own media")
        if not file_storage.delete_media_files(media.file_id):
            logger.warning(f"No stored files found for media {media.file_id}")
        if storage.s3_enabled():
            await storage.delete_prefix(storage.media_key(media.file_id, ''))
        await session.delete(media)
        await session.commit()

# stories
async def create_story(payload):
    if payload.type not in STORY_TYPES:
        raise ValidationError(f"Invalid story type: {payload.type}")
    if payload.type == 'text' and not payload.content.text:
        raise ValidationError("Text content is required for text stories")
    if payload.type != 'text' and not payload.content.media:
        raise ValidationError("Media content is required for non-text stories")
    async with AsyncSessionLocal() as session:
        await _require_user(session, payload.user_id)
        story = Story(
            user_id=payload.user_id,
            type=payload.type,
            content=payload.content.model_dump(exclude_none=True),
            style=payload.style,
            is_active=True,
            views=[],
            replies=[],
        )
        session.add(story)
        await session.commit()
        return story

async def list_active_stories(user_id: int = None):
    """Active, unexpired stories, newest first; all users when user_id is None"""
    where = [Story.is_active.is_(True), Story.expires_at > utcnow()]
    if user_id is not None:
        where.append(Story.user_id == user_id)
    async with AsyncSessionLocal() as session:
        res = await session.execute(select(Story).where(*where).order_by(Story.created_at.desc(), Story.id.desc()))
        return res.scalars().all()

async def _get_live_story(session, story_id: int) -> Story:
    story = await session.get(Story, story_id)
    if not story or not story.is_active:
        raise NotFoundError("Story not found")
    if story.is_expired:
        raise StateConflictError("Story has expired")
    return story

async def view_story(story_id: int, user_id: int):
    async with AsyncSessionLocal() as session:
        story = await _get_live_story(session, story_id)
        if not any(v.user_id == user_id for v in story.views):
            story.views.append(StoryView(user_id=user_id))
            await session.commit()
        return story

async def reply_to_story(story_id: int, user_id: int, message: str):
    if not message:
        raise ValidationError("Story ID, user ID, and message are required")
    async with AsyncSessionLocal() as session:
        story = await _get_live_story(session, story_id)
        story.replies.append(StoryReply(user_id=user_id, message=message))
        await session.commit()
        return story

async def delete_story(story_id: int, user_id: int):
    async with AsyncSessionLocal() as session:
        story = await session.get(Story, story_id)
        if not story:
            raise NotFoundError("Story not found")
        if story.user_id != user_id:
            raise AuthorizationError("You can only delete your own stories")
        story.is_active = False
        await session.commit()
        return story
