import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.common.enums import MilestoneStatus
from terrin.db.models.project import Project, ProjectMilestone

DEFAULT_MILESTONE_WEIGHT = 10


def completion_from_milestones(milestones: list[ProjectMilestone]) -> int:
    """Weighted share of completed milestones, as a whole percentage."""
    total = 0
    completed = 0
    for m in milestones:
        weight = m.progress_weight if m.progress_weight is not None else DEFAULT_MILESTONE_WEIGHT
        total += weight
        if m.status == MilestoneStatus.COMPLETED.value:
            completed += weight
    if total <= 0:
        return 0
    return round(100 * completed / total)


async def recompute_project_completion(project_id: uuid.UUID, db: AsyncSession) -> int:
    result = await db.execute(
        select(ProjectMilestone).where(
            ProjectMilestone.project_id == project_id,
            ProjectMilestone.is_deleted.is_(False),
        )
    )
    percentage = completion_from_milestones(list(result.scalars().all()))

    project = await db.get(Project, project_id)
    if project is not None:
        project.completion_percentage = percentage
        await db.flush()
    return percentage
