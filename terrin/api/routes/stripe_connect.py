from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.api.deps import get_db, require_permission
from terrin.api.routes.contractors import get_user_contractor
from terrin.common.enums import Permission
from terrin.common.exceptions import NotFoundError
from terrin.common.logging import get_logger
from terrin.config import settings
from terrin.db.models.contractor import Contractor
from terrin.db.models.user import User
from terrin.integrations.stripe_client import StripeClient

router = APIRouter(prefix="/stripe", tags=["Stripe Connect"])

logger = get_logger("stripe")

ONBOARDING_PATH = "/professional-portal"


class LinkResponse(BaseModel):
    url: str


class AccountStatusResponse(BaseModel):
    has_account: bool
    account_id: str | None
    charges_enabled: bool
    payouts_enabled: bool
    details_submitted: bool
    onboarding_complete: bool


@router.post("/create-account-link", response_model=LinkResponse)
async def create_account_link(
    request: Request,
    current_user: User = Depends(require_permission(Permission.RECEIVE_PAYMENTS)),
    db: AsyncSession = Depends(get_db),
):
    stripe = StripeClient()
    stripe.ensure_configured()
    contractor = await _require_contractor(current_user, db)

    if not contractor.stripe_account_id:
        account = await stripe.create_express_account(
            contractor.email or current_user.email,
            metadata={"contractor_id": str(contractor.id), "user_id": str(current_user.id)},
        )
        contractor.stripe_account_id = account["id"]
        await db.flush()
        logger.info("Linked Stripe account %s to contractor %s", account["id"], contractor.id)

    base = (request.headers.get("origin") or settings.APP_URL).rstrip("/")
    link = await stripe.create_account_link(
        contractor.stripe_account_id,
        refresh_url=f"{base}{ONBOARDING_PATH}?refresh=true",
        return_url=f"{base}{ONBOARDING_PATH}?success=true",
    )
    return LinkResponse(url=link["url"])


@router.post("/dashboard-link", response_model=LinkResponse)
async def create_dashboard_link(
    current_user: User = Depends(require_permission(Permission.RECEIVE_PAYMENTS)),
    db: AsyncSession = Depends(get_db),
):
    stripe = StripeClient()
    stripe.ensure_configured()
    contractor = await _require_contractor(current_user, db)
    if not contractor.stripe_account_id:
        raise NotFoundError("Stripe account")

    link = await stripe.create_login_link(contractor.stripe_account_id)
    return LinkResponse(url=link["url"])


@router.get("/account-status", response_model=AccountStatusResponse)
async def get_account_status(
    current_user: User = Depends(require_permission(Permission.RECEIVE_PAYMENTS)),
    db: AsyncSession = Depends(get_db),
):
    stripe = StripeClient()
    stripe.ensure_configured()
    contractor = await _require_contractor(current_user, db)

    if not contractor.stripe_account_id:
        return AccountStatusResponse(
            has_account=False,
            account_id=None,
            charges_enabled=False,
            payouts_enabled=False,
            details_submitted=False,
            onboarding_complete=False,
        )

    account = await stripe.retrieve_account(contractor.stripe_account_id)
    charges = bool(account.get("charges_enabled"))
    payouts = bool(account.get("payouts_enabled"))
    if charges and payouts and not contractor.stripe_onboarding_complete:
        contractor.stripe_onboarding_complete = True
        await db.flush()
        logger.info("Contractor %s completed Stripe onboarding", contractor.id)

    return AccountStatusResponse(
        has_account=True,
        account_id=contractor.stripe_account_id,
        charges_enabled=charges,
        payouts_enabled=payouts,
        details_submitted=bool(account.get("details_submitted")),
        onboarding_complete=bool(contractor.stripe_onboarding_complete),
    )


async def _require_contractor(user: User, db: AsyncSession) -> Contractor:
    contractor = await get_user_contractor(user.id, db)
    if not contractor:
        raise NotFoundError("Contractor profile")
    return contractor
