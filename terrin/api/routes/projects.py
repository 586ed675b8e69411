import uuid

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.api.deps import get_current_user, get_db, require_permission
from terrin.api.routes.estimates import EstimateResponse
from terrin.api.routes.milestones import MilestoneResponse
from terrin.common.enums import (
    MilestoneStatus,
    Permission,
    ProjectStatus,
    ProjectUpdateType,
    UserRole,
)
from terrin.common.logging import get_logger
from terrin.core.matching.discovery import match_contractors
from terrin.core.matching.schemas import ContractorMatch
from terrin.core.projects.access import verify_project_access, verify_project_owner
from terrin.core.projects.progress import recompute_project_completion
from terrin.db.models.estimate import Estimate
from terrin.db.models.project import Project, ProjectMilestone, ProjectUpdate
from terrin.db.models.user import User
from terrin.integrations.ai_client import AIClient

router = APIRouter(prefix="/projects", tags=["Projects"])

logger = get_logger("projects")


# ---------- Schemas ----------


class ProjectCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    description: str = Field(min_length=1)
    project_type: str = Field(min_length=1, max_length=100)
    budget_range: str = Field(min_length=1, max_length=100)
    timeline: str = Field(min_length=1, max_length=100)
    location: str = Field(min_length=1, max_length=500)


class ProjectUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = None
    project_type: str | None = None
    budget_range: str | None = None
    timeline: str | None = None
    location: str | None = None
    status: ProjectStatus | None = None
    completion_percentage: int | None = Field(None, ge=0, le=100)


class ProjectResponse(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: str
    project_type: str
    budget_range: str
    timeline: str
    location: str
    status: str
    completion_percentage: int
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}

    @classmethod
    def from_orm_instance(cls, project: Project) -> "ProjectResponse":
        return cls(
            id=project.id,
            owner_id=project.owner_id,
            title=project.title,
            description=project.description,
            project_type=project.project_type,
            budget_range=project.budget_range,
            timeline=project.timeline,
            location=project.location,
            status=project.status,
            completion_percentage=project.completion_percentage,
            created_at=project.created_at.isoformat(),
            updated_at=project.updated_at.isoformat(),
        )


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]
    total: int


class ProjectUpdateCreateRequest(BaseModel):
    update_type: ProjectUpdateType = ProjectUpdateType.NOTE
    title: str = Field(min_length=1, max_length=500)
    description: str | None = None
    old_value: str | None = None
    new_value: str | None = None


class ProjectUpdateResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    user_id: uuid.UUID
    update_type: str
    title: str
    description: str | None
    old_value: str | None
    new_value: str | None
    created_at: str


class TimelineResponse(BaseModel):
    message: str
    milestones_created: int
    total_duration: str | None
    phases: list[str]
    milestones: list[MilestoneResponse]
    completion_percentage: int


class MatchListResponse(BaseModel):
    project_id: uuid.UUID
    matches: list[ContractorMatch]


# ---------- Endpoints ----------


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    body: ProjectCreateRequest,
    current_user: User = Depends(require_permission(Permission.CREATE_PROJECTS)),
    db: AsyncSession = Depends(get_db),
):
    project = Project(
        owner_id=current_user.id,
        title=body.title,
        description=body.description,
        project_type=body.project_type,
        budget_range=body.budget_range,
        timeline=body.timeline,
        location=body.location,
        status=ProjectStatus.ACTIVE.value,
        completion_percentage=0,
    )
    db.add(project)
    await db.flush()
    await db.refresh(project)
    logger.info("Project %s created by %s", project.id, current_user.id)
    return ProjectResponse.from_orm_instance(project)


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    current_user: User = Depends(require_permission(Permission.VIEW_PROJECTS)),
    db: AsyncSession = Depends(get_db),
):
    query = select(Project).where(Project.is_deleted.is_(False))

    if current_user.role != UserRole.ADMIN.value:
        query = query.where(Project.owner_id == current_user.id)

    query = query.order_by(Project.created_at.desc())
    result = await db.execute(query)
    projects = result.scalars().all()

    return ProjectListResponse(
        projects=[ProjectResponse.from_orm_instance(p) for p in projects],
        total=len(projects),
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: uuid.UUID,
    current_user: User = Depends(require_permission(Permission.VIEW_PROJECTS)),
    db: AsyncSession = Depends(get_db),
):
    project = await verify_project_access(project_id, current_user, db)
    return ProjectResponse.from_orm_instance(project)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdateRequest,
    current_user: User = Depends(require_permission(Permission.EDIT_PROJECTS)),
    db: AsyncSession = Depends(get_db),
):
    project = await verify_project_owner(project_id, current_user, db)

    for field in ("title", "description", "project_type", "budget_range", "timeline", "location"):
        value = getattr(body, field)
        if value is not None:
            setattr(project, field, value)

    if body.status is not None and body.status.value != project.status:
        db.add(ProjectUpdate(
            project_id=project.id,
            user_id=current_user.id,
            update_type=ProjectUpdateType.STATUS_CHANGE.value,
            title=f"Status changed to {body.status.value.replace('_', ' ')}",
            old_value=project.status,
            new_value=body.status.value,
        ))
        project.status = body.status.value

    if (
        body.completion_percentage is not None
        and body.completion_percentage != project.completion_percentage
    ):
        db.add(ProjectUpdate(
            project_id=project.id,
            user_id=current_user.id,
            update_type=ProjectUpdateType.PROGRESS.value,
            title=f"Progress updated to {body.completion_percentage}%",
            old_value=str(project.completion_percentage),
            new_value=str(body.completion_percentage),
        ))
        project.completion_percentage = body.completion_percentage

    await db.flush()
    await db.refresh(project)
    return ProjectResponse.from_orm_instance(project)


@router.delete("/{project_id}")
async def delete_project(
    project_id: uuid.UUID,
    current_user: User = Depends(require_permission(Permission.DELETE_PROJECTS)),
    db: AsyncSession = Depends(get_db),
):
    project = await verify_project_owner(project_id, current_user, db)
    project.soft_delete()
    await db.flush()
    logger.info("Project %s deleted by %s", project.id, current_user.id)
    return {"message": "Project deleted successfully"}


# ---------- Activity feed ----------


@router.get("/{project_id}/updates", response_model=list[ProjectUpdateResponse])
async def list_project_updates(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await verify_project_access(project_id, current_user, db)
    result = await db.execute(
        select(ProjectUpdate)
        .where(ProjectUpdate.project_id == project_id, ProjectUpdate.is_deleted.is_(False))
        .order_by(ProjectUpdate.created_at.desc())
    )
    return [_update_response(u) for u in result.scalars().all()]


@router.post("/{project_id}/updates", response_model=ProjectUpdateResponse, status_code=201)
async def create_project_update(
    project_id: uuid.UUID,
    body: ProjectUpdateCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await verify_project_access(project_id, current_user, db)
    update = ProjectUpdate(
        project_id=project_id,
        user_id=current_user.id,
        update_type=body.update_type.value,
        title=body.title,
        description=body.description,
        old_value=body.old_value,
        new_value=body.new_value,
    )
    db.add(update)
    await db.flush()
    await db.refresh(update)
    return _update_response(update)


# ---------- Estimates, timeline, matching ----------


@router.get("/{project_id}/estimate", response_model=EstimateResponse | None)
async def get_project_estimate(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await verify_project_access(project_id, current_user, db)
    result = await db.execute(
        select(Estimate)
        .where(Estimate.project_id == project_id, Estimate.is_deleted.is_(False))
        .order_by(Estimate.created_at.desc())
        .limit(1)
    )
    estimate = result.scalar_one_or_none()
    return EstimateResponse.from_orm_instance(estimate) if estimate else None


@router.post("/{project_id}/generate-timeline", response_model=TimelineResponse)
async def generate_timeline(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await verify_project_owner(project_id, current_user, db)

    ai = AIClient()
    timeline = await ai.generate_project_timeline({
        "title": project.title,
        "description": project.description,
        "project_type": project.project_type,
        "budget_range": project.budget_range,
        "timeline": project.timeline,
        "location": project.location,
    })

    created: list[ProjectMilestone] = []
    for item in timeline["milestones"]:
        milestone = ProjectMilestone(
            project_id=project.id,
            title=item["title"],
            description=item.get("description") or "",
            status=MilestoneStatus.PENDING.value,
            order=item["order"],
            progress_weight=item["progress_weight"],
            estimated_duration_days=item.get("estimated_days"),
        )
        db.add(milestone)
        created.append(milestone)
    await db.flush()
    for milestone in created:
        await db.refresh(milestone)

    completion = await recompute_project_completion(project.id, db)
    logger.info("Created %d milestones for project %s", len(created), project.id)

    return TimelineResponse(
        message="Timeline generated successfully",
        milestones_created=len(created),
        total_duration=timeline.get("total_duration"),
        phases=timeline.get("phases") or [],
        milestones=[MilestoneResponse.from_orm_instance(m) for m in created],
        completion_percentage=completion,
    )


@router.get("/{project_id}/matches", response_model=MatchListResponse)
async def get_project_matches(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await verify_project_access(project_id, current_user, db)
    matches = await match_contractors(project, db)
    return MatchListResponse(project_id=project.id, matches=matches)


def _update_response(update: ProjectUpdate) -> ProjectUpdateResponse:
    return ProjectUpdateResponse(
        id=update.id,
        project_id=update.project_id,
        user_id=update.user_id,
        update_type=update.update_type,
        title=update.title,
        description=update.description,
        old_value=update.old_value,
        new_value=update.new_value,
        created_at=update.created_at.isoformat(),
    )
