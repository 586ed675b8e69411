import uuid
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.api.deps import get_db, require_permission
from terrin.common.enums import Permission, UserRole
from terrin.common.exceptions import BadRequestError, NotFoundError, PermissionDeniedError
from terrin.common.logging import get_logger
from terrin.core.estimating.titles import generate_smart_title, needs_smart_title
from terrin.core.projects.access import verify_project_owner
from terrin.db.models.estimate import Estimate
from terrin.db.models.user import User
from terrin.integrations.ai_client import AIClient

router = APIRouter(tags=["Estimates"])

logger = get_logger("estimates")

COST_FIELDS = (
    "total_cost_min",
    "total_cost_max",
    "materials_cost_min",
    "materials_cost_max",
    "labor_cost_min",
    "labor_cost_max",
    "permits_cost_min",
    "permits_cost_max",
    "contingency_cost_min",
    "contingency_cost_max",
)


# ---------- Schemas ----------


class EstimateInput(BaseModel):
    description: str | None = None
    location: str | None = None
    title: str | None = None
    project_type: str | None = None
    budget_range: str | None = None
    timeline: str | None = None
    project_id: uuid.UUID | None = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class EstimateCreateRequest(EstimateInput):
    project_data: EstimateInput | None = None

    def resolved(self) -> EstimateInput:
        return self.project_data or self


class EstimateResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    project_id: uuid.UUID | None
    title: str
    timeline: str | None
    input_data: dict[str, Any]
    total_cost_min: float
    total_cost_max: float
    materials_cost_min: float
    materials_cost_max: float
    labor_cost_min: float
    labor_cost_max: float
    permits_cost_min: float
    permits_cost_max: float
    contingency_cost_min: float
    contingency_cost_max: float
    ai_analysis: dict[str, Any]
    trade_breakdowns: list[dict[str, Any]]
    created_at: str

    @classmethod
    def from_orm_instance(cls, estimate: Estimate) -> "EstimateResponse":
        return cls(
            id=estimate.id,
            user_id=estimate.user_id,
            project_id=estimate.project_id,
            title=estimate.title,
            timeline=estimate.timeline,
            input_data=estimate.input_data or {},
            ai_analysis=estimate.ai_analysis or {},
            trade_breakdowns=estimate.trade_breakdowns or [],
            created_at=estimate.created_at.isoformat(),
            **{f: float(getattr(estimate, f) or 0) for f in COST_FIELDS},
        )


class EstimateListResponse(BaseModel):
    estimates: list[EstimateResponse]
    total: int


# ---------- Endpoints ----------


@router.post("/estimate", response_model=EstimateResponse, status_code=201)
@router.post("/estimates", response_model=EstimateResponse, status_code=201, include_in_schema=False)
async def create_estimate(
    body: EstimateCreateRequest,
    current_user: User = Depends(require_permission(Permission.CREATE_ESTIMATES)),
    db: AsyncSession = Depends(get_db),
):
    data = body.resolved()
    description = (data.description or "").strip()
    location = (data.location or "").strip()
    if not description or not location:
        raise BadRequestError("Description and location are required")

    if data.project_id is not None:
        await verify_project_owner(data.project_id, current_user, db)

    title = data.title.strip() if data.title else None
    if needs_smart_title(title, data.project_type):
        title = generate_smart_title(description)

    input_data = {
        "title": title,
        "description": description,
        "location": location,
        "project_type": data.project_type,
        "budget_range": data.budget_range,
        "timeline": data.timeline,
        "project_id": str(data.project_id) if data.project_id else None,
    }

    ai = AIClient()
    result = await ai.estimate_project_costs(input_data)
    complexity = await ai.analyze_project_complexity(input_data)

    analysis = dict(result.get("analysis") or {})
    analysis["complexity"] = complexity

    estimate = Estimate(
        user_id=current_user.id,
        project_id=data.project_id,
        title=title,
        input_data=input_data,
        timeline=result.get("timeline") or data.timeline,
        ai_analysis=analysis,
        trade_breakdowns=result.get("trade_breakdowns") or [],
        **{f: Decimal(str(round(float(result.get(f) or 0), 2))) for f in COST_FIELDS},
    )
    db.add(estimate)
    await db.flush()
    await db.refresh(estimate)

    logger.info(
        "Estimate %s for '%s': $%.0f-$%.0f",
        estimate.id, title, result["total_cost_min"], result["total_cost_max"],
    )
    return EstimateResponse.from_orm_instance(estimate)


@router.get("/estimates", response_model=EstimateListResponse)
async def list_estimates(
    current_user: User = Depends(require_permission(Permission.VIEW_ESTIMATES)),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Estimate)
        .where(Estimate.user_id == current_user.id, Estimate.is_deleted.is_(False))
        .order_by(Estimate.created_at.desc())
    )
    estimates = result.scalars().all()
    return EstimateListResponse(
        estimates=[EstimateResponse.from_orm_instance(e) for e in estimates],
        total=len(estimates),
    )


@router.get("/estimates/{estimate_id}", response_model=EstimateResponse)
async def get_estimate(
    estimate_id: uuid.UUID,
    current_user: User = Depends(require_permission(Permission.VIEW_ESTIMATES)),
    db: AsyncSession = Depends(get_db),
):
    estimate = await _get_owned_estimate(estimate_id, current_user, db)
    return EstimateResponse.from_orm_instance(estimate)


@router.delete("/estimates/{estimate_id}")
async def delete_estimate(
    estimate_id: uuid.UUID,
    current_user: User = Depends(require_permission(Permission.VIEW_ESTIMATES)),
    db: AsyncSession = Depends(get_db),
):
    estimate = await _get_owned_estimate(estimate_id, current_user, db)
    estimate.soft_delete()
    await db.flush()
    return {"message": "Estimate deleted successfully"}


async def _get_owned_estimate(
    estimate_id: uuid.UUID, user: User, db: AsyncSession
) -> Estimate:
    result = await db.execute(
        select(Estimate).where(Estimate.id == estimate_id, Estimate.is_deleted.is_(False))
    )
    estimate = result.scalar_one_or_none()
    if not estimate:
        raise NotFoundError("Estimate", str(estimate_id))
    if user.role != UserRole.ADMIN.value and estimate.user_id != user.id:
        raise PermissionDeniedError("Access denied")
    return estimate
