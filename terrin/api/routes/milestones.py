import uuid
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.api.deps import get_current_user, get_db
from terrin.common.enums import MilestoneStatus, ProjectUpdateType
from terrin.common.exceptions import NotFoundError
from terrin.core.projects.access import verify_project_access, verify_project_owner
from terrin.core.projects.progress import recompute_project_completion
from terrin.db.base import utcnow
from terrin.db.models.project import ProjectMilestone, ProjectUpdate
from terrin.db.models.user import User

router = APIRouter(prefix="/projects", tags=["Milestones"])


# ---------- Schemas ----------


class MilestoneCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    description: str | None = None
    status: MilestoneStatus = MilestoneStatus.PENDING
    order: int | None = None
    progress_weight: int = Field(10, ge=0, le=100)
    estimated_duration_days: int | None = Field(None, ge=0)
    due_date: datetime | None = None


class MilestoneUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = None
    status: MilestoneStatus | None = None
    order: int | None = None
    progress_weight: int | None = Field(None, ge=0, le=100)
    estimated_duration_days: int | None = Field(None, ge=0)
    due_date: datetime | None = None


class MilestoneResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    title: str
    description: str | None
    status: str
    order: int
    progress_weight: int
    estimated_duration_days: int | None
    due_date: str | None
    completed_date: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, m: ProjectMilestone) -> "MilestoneResponse":
        return cls(
            id=m.id,
            project_id=m.project_id,
            title=m.title,
            description=m.description,
            status=m.status,
            order=m.order,
            progress_weight=m.progress_weight,
            estimated_duration_days=m.estimated_duration_days,
            due_date=m.due_date.isoformat() if m.due_date else None,
            completed_date=m.completed_date.isoformat() if m.completed_date else None,
            created_at=m.created_at.isoformat(),
        )


# ---------- Endpoints ----------


@router.post("/{project_id}/milestones", response_model=MilestoneResponse, status_code=201)
async def create_milestone(
    project_id: uuid.UUID,
    body: MilestoneCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await verify_project_owner(project_id, current_user, db)

    order = body.order
    if order is None:
        max_q = await db.execute(
            select(func.max(ProjectMilestone.order)).where(
                ProjectMilestone.project_id == project_id,
                ProjectMilestone.is_deleted.is_(False),
            )
        )
        order = (max_q.scalar() or 0) + 1

    milestone = ProjectMilestone(
        project_id=project_id,
        title=body.title,
        description=body.description,
        status=body.status.value,
        order=order,
        progress_weight=body.progress_weight,
        estimated_duration_days=body.estimated_duration_days,
        due_date=body.due_date,
        completed_date=utcnow() if body.status == MilestoneStatus.COMPLETED else None,
    )
    db.add(milestone)
    await db.flush()
    await db.refresh(milestone)

    await recompute_project_completion(project_id, db)
    return MilestoneResponse.from_orm_instance(milestone)


@router.get("/{project_id}/milestones", response_model=list[MilestoneResponse])
async def list_milestones(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await verify_project_access(project_id, current_user, db)
    result = await db.execute(
        select(ProjectMilestone)
        .where(ProjectMilestone.project_id == project_id, ProjectMilestone.is_deleted.is_(False))
        .order_by(ProjectMilestone.order, ProjectMilestone.created_at)
    )
    return [MilestoneResponse.from_orm_instance(m) for m in result.scalars().all()]


@router.patch("/milestones/{milestone_id}", response_model=MilestoneResponse)
async def update_milestone(
    milestone_id: uuid.UUID,
    body: MilestoneUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    milestone = await _get_milestone(milestone_id, db)
    await verify_project_owner(milestone.project_id, current_user, db)

    for field in ("title", "description", "order", "progress_weight", "estimated_duration_days", "due_date"):
        value = getattr(body, field)
        if value is not None:
            setattr(milestone, field, value)

    if body.status is not None and body.status.value != milestone.status:
        old_status = milestone.status
        milestone.status = body.status.value
        if body.status == MilestoneStatus.COMPLETED:
            milestone.completed_date = utcnow()
            db.add(ProjectUpdate(
                project_id=milestone.project_id,
                user_id=current_user.id,
                update_type=ProjectUpdateType.MILESTONE.value,
                title=f"Milestone completed: {milestone.title}",
                old_value=old_status,
                new_value=milestone.status,
            ))
        else:
            milestone.completed_date = None

    await db.flush()
    await db.refresh(milestone)

    await recompute_project_completion(milestone.project_id, db)
    return MilestoneResponse.from_orm_instance(milestone)


@router.delete("/milestones/{milestone_id}")
async def delete_milestone(
    milestone_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    milestone = await _get_milestone(milestone_id, db)
    await verify_project_owner(milestone.project_id, current_user, db)

    milestone.soft_delete()
    await db.flush()

    completion = await recompute_project_completion(milestone.project_id, db)
    return {"message": "Milestone deleted successfully", "completion_percentage": completion}


async def _get_milestone(milestone_id: uuid.UUID, db: AsyncSession) -> ProjectMilestone:
    result = await db.execute(
        select(ProjectMilestone).where(
            ProjectMilestone.id == milestone_id, ProjectMilestone.is_deleted.is_(False)
        )
    )
    milestone = result.scalar_one_or_none()
    if not milestone:
        raise NotFoundError("Milestone", str(milestone_id))
    return milestone
