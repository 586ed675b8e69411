"""Shared ownership and visibility checks for project-scoped routes."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.common.enums import UserRole
from terrin.common.exceptions import NotFoundError, PermissionDeniedError
from terrin.db.models.conversation import Conversation, ConversationParticipant
from terrin.db.models.project import Project
from terrin.db.models.user import User


async def get_project_or_404(project_id: uuid.UUID, db: AsyncSession) -> Project:
    result = await db.execute(
        select(Project).where(Project.id == project_id, Project.is_deleted.is_(False))
    )
    project = result.scalar_one_or_none()
    if not project:
        raise NotFoundError("Project", str(project_id))
    return project


async def is_project_participant(project: Project, user: User, db: AsyncSession) -> bool:
    """True when the user shares a conversation about the project."""
    result = await db.execute(
        select(ConversationParticipant.id)
        .join(Conversation, Conversation.id == ConversationParticipant.conversation_id)
        .where(
            Conversation.project_id == project.id,
            Conversation.is_deleted.is_(False),
            ConversationParticipant.user_id == user.id,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def verify_project_access(
    project_id: uuid.UUID, user: User, db: AsyncSession
) -> Project:
    """Owner, admin, or a professional linked through a conversation."""
    project = await get_project_or_404(project_id, db)
    if user.role == UserRole.ADMIN.value or project.owner_id == user.id:
        return project
    if await is_project_participant(project, user, db):
        return project
    raise PermissionDeniedError("You do not have access to this project")


async def verify_project_owner(
    project_id: uuid.UUID, user: User, db: AsyncSession
) -> Project:
    project = await get_project_or_404(project_id, db)
    if user.role != UserRole.ADMIN.value and project.owner_id != user.id:
        raise PermissionDeniedError("Only the project owner can do this")
    return project
