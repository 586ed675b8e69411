import uuid
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.api.deps import get_current_user, get_db
from terrin.common.enums import UserRole
from terrin.common.exceptions import NotFoundError, PermissionDeniedError
from terrin.core.projects.access import verify_project_access, verify_project_owner
from terrin.db.models.project import ProjectCost
from terrin.db.models.user import User

router = APIRouter(prefix="/projects", tags=["Costs"])

COST_CATEGORIES = {"materials", "labor", "permits", "equipment", "other"}


# ---------- Schemas ----------


class CostCreateRequest(BaseModel):
    category: str = Field(min_length=1, max_length=50)
    description: str = Field(min_length=1)
    amount: Decimal = Field(ge=0, max_digits=14, decimal_places=2)
    vendor: str | None = None
    date_incurred: datetime | None = None


class CostResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    user_id: uuid.UUID
    category: str
    description: str
    amount: float
    vendor: str | None
    date_incurred: str | None
    created_at: str


class CostListResponse(BaseModel):
    costs: list[CostResponse]
    total: float
    by_category: dict[str, float]


# ---------- Endpoints ----------


@router.post("/{project_id}/costs", response_model=CostResponse, status_code=201)
async def create_cost(
    project_id: uuid.UUID,
    body: CostCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await verify_project_owner(project_id, current_user, db)

    category = body.category.lower()
    cost = ProjectCost(
        project_id=project_id,
        user_id=current_user.id,
        category=category if category in COST_CATEGORIES else "other",
        description=body.description,
        amount=body.amount,
        vendor=body.vendor,
        date_incurred=body.date_incurred,
    )
    db.add(cost)
    await db.flush()
    await db.refresh(cost)
    return _cost_response(cost)


@router.get("/{project_id}/costs", response_model=CostListResponse)
async def list_costs(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await verify_project_access(project_id, current_user, db)
    result = await db.execute(
        select(ProjectCost)
        .where(ProjectCost.project_id == project_id, ProjectCost.is_deleted.is_(False))
        .order_by(ProjectCost.created_at.desc())
    )
    costs = result.scalars().all()

    by_category: dict[str, float] = {}
    for c in costs:
        by_category[c.category] = by_category.get(c.category, 0.0) + float(c.amount)

    return CostListResponse(
        costs=[_cost_response(c) for c in costs],
        total=round(sum(float(c.amount) for c in costs), 2),
        by_category={k: round(v, 2) for k, v in by_category.items()},
    )


@router.delete("/costs/{cost_id}")
async def delete_cost(
    cost_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(ProjectCost).where(ProjectCost.id == cost_id, ProjectCost.is_deleted.is_(False))
    )
    cost = result.scalar_one_or_none()
    if not cost:
        raise NotFoundError("Cost", str(cost_id))
    if current_user.role != UserRole.ADMIN.value and cost.user_id != current_user.id:
        raise PermissionDeniedError("Only the person who recorded this cost can delete it")

    cost.soft_delete()
    await db.flush()
    return {"message": "Cost deleted successfully"}


def _cost_response(cost: ProjectCost) -> CostResponse:
    return CostResponse(
        id=cost.id,
        project_id=cost.project_id,
        user_id=cost.user_id,
        category=cost.category,
        description=cost.description,
        amount=float(cost.amount),
        vendor=cost.vendor,
        date_incurred=cost.date_incurred.isoformat() if cost.date_incurred else None,
        created_at=cost.created_at.isoformat(),
    )
