"""Contractor profiles, mounted at both /contractors and /professionals."""

import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.api.deps import get_current_user, get_db, require_permission
from terrin.common.enums import PaymentStatus, Permission, UserRole
from terrin.common.exceptions import BadRequestError, NotFoundError, PermissionDeniedError
from terrin.common.logging import get_logger
from terrin.db.models.contractor import Contractor
from terrin.db.models.payment import Payment
from terrin.db.models.user import User
from terrin.integrations.stripe_client import StripeClient

router = APIRouter(tags=["Contractors"])

logger = get_logger("contractors")


# ---------- Schemas ----------


class ContractorCreateRequest(BaseModel):
    business_name: str = Field(min_length=1, max_length=500)
    specialty: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    hourly_rate: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    location: str = Field(min_length=1, max_length=500)
    service_area: str = Field(min_length=1, max_length=500)
    years_experience: int = Field(ge=0)
    license_number: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None


class ContractorUpdateRequest(BaseModel):
    business_name: str | None = Field(None, min_length=1, max_length=500)
    specialty: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    hourly_rate: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    location: str | None = None
    service_area: str | None = None
    years_experience: int | None = Field(None, ge=0)
    license_number: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None


class ContractorResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    business_name: str
    specialty: str
    description: str
    hourly_rate: float
    location: str
    service_area: str
    years_experience: int
    rating: float
    review_count: int
    verified: bool
    license_number: str | None
    phone: str | None
    email: str | None
    website: str | None
    stripe_onboarding_complete: bool
    has_payment_account: bool
    created_at: str

    @classmethod
    def from_orm_instance(cls, c: Contractor) -> "ContractorResponse":
        return cls(
            id=c.id,
            user_id=c.user_id,
            business_name=c.business_name,
            specialty=c.specialty,
            description=c.description,
            hourly_rate=float(c.hourly_rate),
            location=c.location,
            service_area=c.service_area,
            years_experience=c.years_experience,
            rating=float(c.rating or 0),
            review_count=c.review_count or 0,
            verified=bool(c.verified),
            license_number=c.license_number,
            phone=c.phone,
            email=c.email,
            website=c.website,
            stripe_onboarding_complete=bool(c.stripe_onboarding_complete),
            has_payment_account=bool(c.stripe_account_id),
            created_at=c.created_at.isoformat(),
        )


class EarningsResponse(BaseModel):
    contractor_id: uuid.UUID
    total_earned: float
    platform_fees: float
    net_earned: float
    payment_count: int
    available_balance: float
    pending_balance: float
    currency: str


class PayoutRequest(BaseModel):
    amount: float
    currency: str = "usd"


class PayoutResponse(BaseModel):
    payout_id: str
    amount: float
    currency: str
    status: str
    arrival_date: int | None


# ---------- Endpoints ----------


@router.post("", response_model=ContractorResponse, status_code=201)
async def create_contractor(
    body: ContractorCreateRequest,
    current_user: User = Depends(require_permission(Permission.MANAGE_CONTRACTOR_PROFILE)),
    db: AsyncSession = Depends(get_db),
):
    contractor = Contractor(
        user_id=current_user.id,
        business_name=body.business_name,
        specialty=body.specialty,
        description=body.description,
        hourly_rate=body.hourly_rate,
        location=body.location,
        service_area=body.service_area,
        years_experience=body.years_experience,
        license_number=body.license_number,
        phone=body.phone,
        email=body.email or current_user.email,
        website=body.website,
        rating=Decimal("0.00"),
        review_count=0,
        verified=False,
    )
    db.add(contractor)
    await db.flush()
    await db.refresh(contractor)
    logger.info("Contractor profile %s created for user %s", contractor.id, current_user.id)
    return ContractorResponse.from_orm_instance(contractor)


@router.get("", response_model=list[ContractorResponse])
async def list_contractors(
    specialty: str | None = None,
    location: str | None = None,
    search: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    query = select(Contractor).where(Contractor.is_deleted.is_(False))

    if specialty and specialty.lower() != "all":
        query = query.where(func.lower(Contractor.specialty).contains(specialty.lower()))
    if location:
        loc = location.lower()
        query = query.where(
            or_(
                func.lower(Contractor.location).contains(loc),
                func.lower(Contractor.service_area).contains(loc),
            )
        )
    if search:
        term = search.lower()
        query = query.where(
            or_(
                func.lower(Contractor.business_name).contains(term),
                func.lower(Contractor.description).contains(term),
                func.lower(Contractor.specialty).contains(term),
            )
        )

    query = query.order_by(Contractor.rating.desc(), Contractor.created_at.desc()).limit(limit)
    result = await db.execute(query)
    return [ContractorResponse.from_orm_instance(c) for c in result.scalars().all()]


@router.get("/me", response_model=ContractorResponse | None)
async def get_my_contractor_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    contractor = await get_user_contractor(current_user.id, db)
    return ContractorResponse.from_orm_instance(contractor) if contractor else None


@router.get("/user/{user_id}", response_model=list[ContractorResponse])
async def list_user_contractors(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Contractor)
        .where(Contractor.user_id == user_id, Contractor.is_deleted.is_(False))
        .order_by(Contractor.created_at.desc())
    )
    return [ContractorResponse.from_orm_instance(c) for c in result.scalars().all()]


@router.get("/{contractor_id}", response_model=ContractorResponse)
async def get_contractor(
    contractor_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    contractor = await _get_contractor(contractor_id, db)
    return ContractorResponse.from_orm_instance(contractor)


@router.patch("/{contractor_id}", response_model=ContractorResponse)
async def update_contractor(
    contractor_id: uuid.UUID,
    body: ContractorUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    contractor = await _get_owned_contractor(contractor_id, current_user, db)

    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(contractor, field, value)

    await db.flush()
    await db.refresh(contractor)
    return ContractorResponse.from_orm_instance(contractor)


@router.get("/{contractor_id}/earnings", response_model=EarningsResponse)
async def get_contractor_earnings(
    contractor_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    contractor = await _get_owned_contractor(contractor_id, current_user, db)

    result = await db.execute(
        select(
            func.coalesce(func.sum(Payment.amount), 0),
            func.coalesce(func.sum(Payment.platform_fee), 0),
            func.count(Payment.id),
        ).where(
            or_(Payment.contractor_id == contractor.id, Payment.payee_id == contractor.user_id),
            Payment.status == PaymentStatus.SUCCEEDED.value,
            Payment.is_deleted.is_(False),
        )
    )
    gross, fees, count = result.one()
    gross = float(gross or 0)
    fees = float(fees or 0)

    available = pending = 0.0
    currency = "usd"
    if contractor.stripe_account_id:
        stripe = StripeClient()
        stripe.ensure_configured()
        balance = await stripe.retrieve_balance(contractor.stripe_account_id)
        available = sum(b.get("amount", 0) for b in balance.get("available", [])) / 100
        pending = sum(b.get("amount", 0) for b in balance.get("pending", [])) / 100
        if balance.get("available"):
            currency = balance["available"][0].get("currency", currency)

    return EarningsResponse(
        contractor_id=contractor.id,
        total_earned=round(gross, 2),
        platform_fees=round(fees, 2),
        net_earned=round(gross - fees, 2),
        payment_count=count or 0,
        available_balance=available,
        pending_balance=pending,
        currency=currency,
    )


@router.post("/{contractor_id}/request-payout", response_model=PayoutResponse)
async def request_payout(
    contractor_id: uuid.UUID,
    body: PayoutRequest,
    current_user: User = Depends(require_permission(Permission.RECEIVE_PAYMENTS)),
    db: AsyncSession = Depends(get_db),
):
    contractor = await _get_owned_contractor(contractor_id, current_user, db)

    if body.amount <= 0:
        raise BadRequestError("Payout amount must be greater than zero")
    if not contractor.stripe_account_id:
        raise BadRequestError("No connected payment account. Complete Stripe onboarding first")

    stripe = StripeClient()
    stripe.ensure_configured()
    payout = await stripe.create_payout(
        contractor.stripe_account_id,
        round(body.amount * 100),
        currency=body.currency,
    )
    logger.info("Payout %s requested by contractor %s", payout["id"], contractor.id)
    return PayoutResponse(
        payout_id=payout["id"],
        amount=payout["amount"] / 100,
        currency=payout.get("currency", body.currency),
        status=payout.get("status", "pending"),
        arrival_date=payout.get("arrival_date"),
    )


async def get_user_contractor(user_id: uuid.UUID, db: AsyncSession) -> Contractor | None:
    result = await db.execute(
        select(Contractor)
        .where(Contractor.user_id == user_id, Contractor.is_deleted.is_(False))
        .order_by(Contractor.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _get_contractor(contractor_id: uuid.UUID, db: AsyncSession) -> Contractor:
    result = await db.execute(
        select(Contractor).where(Contractor.id == contractor_id, Contractor.is_deleted.is_(False))
    )
    contractor = result.scalar_one_or_none()
    if not contractor:
        raise NotFoundError("Contractor", str(contractor_id))
    return contractor


async def _get_owned_contractor(
    contractor_id: uuid.UUID, user: User, db: AsyncSession
) -> Contractor:
    contractor = await _get_contractor(contractor_id, db)
    if user.role != UserRole.ADMIN.value and contractor.user_id != user.id:
        raise PermissionDeniedError("You can only manage your own contractor profile")
    return contractor
