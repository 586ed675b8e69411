import uuid
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.api.deps import get_current_user, get_db, require_permission
from terrin.common.enums import MessageType, Permission, UserRole
from terrin.common.events import queue_event
from terrin.common.exceptions import BadRequestError, NotFoundError, PermissionDeniedError
from terrin.common.logging import get_logger
from terrin.core.projects.access import verify_project_access
from terrin.db.base import utcnow
from terrin.db.models.conversation import Conversation, ConversationParticipant, Message
from terrin.db.models.project import Project
from terrin.db.models.user import User

router = APIRouter(tags=["Messaging"])

logger = get_logger("messaging")


# ---------- Schemas ----------


class Attachment(BaseModel):
    url: str
    filename: str
    size: int | None = None
    type: str | None = None


class ConversationCreateRequest(BaseModel):
    project_id: uuid.UUID | None = None
    participants: list[uuid.UUID] = Field(default_factory=list)
    title: str | None = Field(None, max_length=500)


class ConversationResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID | None
    title: str | None
    participants: list[str]
    last_message_at: str | None
    created_at: str


class MessageCreateRequest(BaseModel):
    content: str = Field(min_length=1, max_length=10_000)
    message_type: MessageType = MessageType.TEXT
    attachments: list[Attachment] = Field(default_factory=list)


class DirectMessageRequest(MessageCreateRequest):
    conversation_id: uuid.UUID


class MessageResponse(BaseModel):
    id: uuid.UUID
    conversation_id: uuid.UUID
    sender_id: uuid.UUID | None
    content: str
    message_type: str
    attachments: list[dict[str, Any]]
    read_by: list[str]
    created_at: str


class UnreadCountResponse(BaseModel):
    count: int


# ---------- Conversations ----------


@router.get("/conversations", response_model=list[ConversationResponse])
async def list_conversations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Conversation)
        .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
        .where(
            ConversationParticipant.user_id == current_user.id,
            ConversationParticipant.is_hidden.is_(False),
            ConversationParticipant.is_deleted.is_(False),
            Conversation.is_deleted.is_(False),
        )
        .order_by(func.coalesce(Conversation.last_message_at, Conversation.created_at).desc())
    )
    return [conversation_response(c) for c in result.scalars().unique().all()]


@router.post("/conversations", response_model=ConversationResponse, status_code=201)
async def create_conversation(
    body: ConversationCreateRequest,
    current_user: User = Depends(require_permission(Permission.SEND_MESSAGES)),
    db: AsyncSession = Depends(get_db),
):
    member_ids = {current_user.id, *body.participants}

    known = await db.execute(
        select(User.id).where(User.id.in_(member_ids), User.is_deleted.is_(False))
    )
    missing = member_ids - set(known.scalars().all())
    if missing:
        raise BadRequestError(f"Unknown participant(s): {', '.join(str(m) for m in missing)}")

    if body.project_id is not None:
        project = await verify_project_access(body.project_id, current_user, db)
        invited = member_ids - {current_user.id, project.owner_id}
        if invited and not _manages_project(project, current_user):
            raise PermissionDeniedError(
                "Only the project owner can add participants to a project conversation"
            )
        member_ids.add(project.owner_id)

        existing = await db.execute(
            select(Conversation)
            .where(Conversation.project_id == project.id, Conversation.is_deleted.is_(False))
            .order_by(Conversation.created_at)
            .limit(1)
        )
        conversation = existing.scalar_one_or_none()
        if conversation is not None:
            await _add_participants(conversation, member_ids, db)
            await db.refresh(conversation, ["participants"])
            return conversation_response(conversation)

    conversation = Conversation(project_id=body.project_id, title=body.title)
    db.add(conversation)
    await db.flush()
    for member_id in member_ids:
        db.add(ConversationParticipant(conversation_id=conversation.id, user_id=member_id))
    await db.flush()
    await db.refresh(conversation, ["participants"])

    logger.info(
        "Conversation %s created by %s with %d participants",
        conversation.id, current_user.id, len(member_ids),
    )
    return conversation_response(conversation)


@router.delete("/conversations/{conversation_id}")
async def delete_conversation(
    conversation_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    conversation = await get_conversation_for_participant(conversation_id, current_user, db)

    result = await db.execute(
        select(Message).where(
            Message.conversation_id == conversation.id, Message.is_deleted.is_(False)
        )
    )
    for message in result.scalars().all():
        message.soft_delete()
    conversation.soft_delete()
    await db.flush()
    return {"message": "Conversation deleted successfully"}


@router.post("/conversations/{conversation_id}/hide")
async def hide_conversation(
    conversation_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    conversation = await get_conversation_for_participant(conversation_id, current_user, db)
    participant = _participant_row(conversation, current_user.id)
    participant.is_hidden = True
    await db.flush()
    return {"message": "Conversation hidden"}


# ---------- Messages ----------


@router.get("/conversations/{conversation_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    conversation = await get_conversation_for_participant(conversation_id, current_user, db)
    result = await db.execute(
        select(Message)
        .where(Message.conversation_id == conversation.id, Message.is_deleted.is_(False))
        .order_by(Message.created_at.asc())
    )
    return [message_response(m) for m in result.scalars().all()]


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=201,
)
async def send_message(
    conversation_id: uuid.UUID,
    body: MessageCreateRequest,
    current_user: User = Depends(require_permission(Permission.SEND_MESSAGES)),
    db: AsyncSession = Depends(get_db),
):
    conversation = await get_conversation_for_participant(conversation_id, current_user, db)
    message = await post_message(
        conversation,
        body.content,
        db,
        sender=current_user,
        message_type=body.message_type,
        attachments=[a.model_dump() for a in body.attachments],
    )
    return message_response(message)


@router.post("/messages", response_model=MessageResponse, status_code=201)
async def send_direct_message(
    body: DirectMessageRequest,
    current_user: User = Depends(require_permission(Permission.SEND_MESSAGES)),
    db: AsyncSession = Depends(get_db),
):
    conversation = await get_conversation_for_participant(body.conversation_id, current_user, db)
    message = await post_message(
        conversation,
        body.content,
        db,
        sender=current_user,
        message_type=body.message_type,
        attachments=[a.model_dump() for a in body.attachments],
    )
    return message_response(message)


@router.get("/messages/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    my_conversations = (
        select(ConversationParticipant.conversation_id)
        .where(
            ConversationParticipant.user_id == current_user.id,
            ConversationParticipant.is_deleted.is_(False),
        )
        .scalar_subquery()
    )
    result = await db.execute(
        select(Message.sender_id, Message.read_by).where(
            Message.conversation_id.in_(my_conversations),
            Message.is_deleted.is_(False),
        )
    )
    me = str(current_user.id)
    count = sum(
        1
        for sender_id, read_by in result.all()
        if sender_id != current_user.id and me not in (read_by or [])
    )
    return UnreadCountResponse(count=count)


@router.patch("/messages/{message_id}/read", response_model=MessageResponse)
async def mark_message_read(
    message_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Message).where(Message.id == message_id, Message.is_deleted.is_(False))
    )
    message = result.scalar_one_or_none()
    if not message:
        raise NotFoundError("Message", str(message_id))
    await get_conversation_for_participant(message.conversation_id, current_user, db)

    read_by = list(message.read_by or [])
    if str(current_user.id) not in read_by:
        # Reassign so the JSON column registers the change
        message.read_by = [*read_by, str(current_user.id)]
        await db.flush()
        await db.refresh(message)
    return message_response(message)


# ---------- Helpers ----------


async def get_conversation_for_participant(
    conversation_id: uuid.UUID, user: User, db: AsyncSession
) -> Conversation:
    result = await db.execute(
        select(Conversation).where(
            Conversation.id == conversation_id, Conversation.is_deleted.is_(False)
        )
    )
    conversation = result.scalar_one_or_none()
    if not conversation:
        raise NotFoundError("Conversation", str(conversation_id))
    if user.id not in {p.user_id for p in conversation.participants if not p.is_deleted}:
        raise PermissionDeniedError("You are not a participant in this conversation")
    return conversation


async def post_message(
    conversation: Conversation,
    content: str,
    db: AsyncSession,
    sender: User | None = None,
    message_type: MessageType = MessageType.TEXT,
    attachments: list[dict[str, Any]] | None = None,
) -> Message:
    """Persist a message, bump the conversation and notify other participants.

    ``sender=None`` posts a system message.
    """
    message = Message(
        conversation_id=conversation.id,
        sender_id=sender.id if sender else None,
        content=content,
        message_type=message_type.value,
        attachments=attachments or [],
        read_by=[str(sender.id)] if sender else [],
    )
    db.add(message)
    conversation.last_message_at = utcnow()
    for participant in conversation.participants:
        participant.is_hidden = False
    await db.flush()
    await db.refresh(message)

    recipients = [
        str(p.user_id)
        for p in conversation.participants
        if not p.is_deleted and (sender is None or p.user_id != sender.id)
    ]
    queue_event(
        db, recipients, "message.created", message_response(message).model_dump(mode="json")
    )
    return message


async def _add_participants(
    conversation: Conversation, user_ids: set[uuid.UUID], db: AsyncSession
) -> None:
    current = {p.user_id: p for p in conversation.participants}
    for user_id in user_ids:
        row = current.get(user_id)
        if row is None:
            db.add(ConversationParticipant(conversation_id=conversation.id, user_id=user_id))
        elif row.is_hidden:
            row.is_hidden = False
    await db.flush()


def _manages_project(project: Project, user: User) -> bool:
    return user.role == UserRole.ADMIN.value or project.owner_id == user.id


def _participant_row(conversation: Conversation, user_id: uuid.UUID) -> ConversationParticipant:
    for p in conversation.participants:
        if p.user_id == user_id:
            return p
    raise PermissionDeniedError("You are not a participant in this conversation")


def conversation_response(conversation: Conversation) -> ConversationResponse:
    return ConversationResponse(
        id=conversation.id,
        project_id=conversation.project_id,
        title=conversation.title,
        participants=[str(p.user_id) for p in conversation.participants if not p.is_deleted],
        last_message_at=(
            conversation.last_message_at.isoformat() if conversation.last_message_at else None
        ),
        created_at=conversation.created_at.isoformat(),
    )


def message_response(message: Message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        conversation_id=message.conversation_id,
        sender_id=message.sender_id,
        content=message.content,
        message_type=message.message_type,
        attachments=message.attachments or [],
        read_by=message.read_by or [],
        created_at=message.created_at.isoformat(),
    )
