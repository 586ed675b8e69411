import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.api.deps import get_current_user, get_db, require_permission
from terrin.api.routes.contractors import get_user_contractor
from terrin.api.routes.conversations import get_conversation_for_participant, post_message
from terrin.common.enums import MessageType, PaymentStatus, Permission
from terrin.common.exceptions import BadRequestError
from terrin.common.logging import get_logger
from terrin.config import settings
from terrin.core.projects.access import verify_project_access
from terrin.db.models.conversation import Conversation
from terrin.db.models.payment import Payment
from terrin.db.models.user import User
from terrin.integrations.stripe_client import StripeClient, platform_fee_cents

router = APIRouter(tags=["Payments"])

logger = get_logger("payments")

MIN_PAYMENT_AMOUNT = 0.50


# ---------- Schemas ----------


class CreatePaymentIntentRequest(BaseModel):
    amount: float
    project_id: uuid.UUID | None = None
    description: str = ""


class PaymentIntentResponse(BaseModel):
    client_secret: str
    payment_intent_id: str


class CreatePaymentRequest(BaseModel):
    project_id: uuid.UUID | None = None
    amount: float | None = None
    payee_id: uuid.UUID | None = None
    conversation_id: uuid.UUID | None = None
    description: str | None = None


class CreatePaymentResponse(BaseModel):
    client_secret: str
    payment_id: uuid.UUID
    payment_intent_id: str
    amount: float
    platform_fee: float


class PaymentResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    conversation_id: uuid.UUID | None
    payer_id: uuid.UUID
    payee_id: uuid.UUID
    contractor_id: uuid.UUID | None
    amount: float
    platform_fee: float
    currency: str
    status: str
    stripe_payment_intent_id: str | None
    description: str | None
    created_at: str


# ---------- Endpoints ----------


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: CreatePaymentIntentRequest,
    current_user: User = Depends(require_permission(Permission.CREATE_PAYMENTS)),
    db: AsyncSession = Depends(get_db),
):
    stripe = StripeClient()
    stripe.ensure_configured()

    if body.amount < MIN_PAYMENT_AMOUNT:
        raise BadRequestError(f"Amount must be at least ${MIN_PAYMENT_AMOUNT:.2f}")

    metadata = {"user_id": str(current_user.id)}
    if body.project_id is not None:
        await verify_project_access(body.project_id, current_user, db)
        metadata["project_id"] = str(body.project_id)

    intent = await stripe.create_payment_intent(
        round(body.amount * 100),
        description=body.description,
        metadata=metadata,
    )
    return PaymentIntentResponse(client_secret=intent["client_secret"], payment_intent_id=intent["id"])


@router.post("/payments/create", response_model=CreatePaymentResponse, status_code=201)
async def create_payment(
    body: CreatePaymentRequest,
    current_user: User = Depends(require_permission(Permission.CREATE_PAYMENTS)),
    db: AsyncSession = Depends(get_db),
):
    stripe = StripeClient()
    stripe.ensure_configured()

    if body.project_id is None or body.amount is None or body.payee_id is None:
        raise BadRequestError("Missing required fields: project_id, amount, payee_id")
    if body.amount < MIN_PAYMENT_AMOUNT:
        raise BadRequestError(f"Amount must be at least ${MIN_PAYMENT_AMOUNT:.2f}")
    if body.payee_id == current_user.id:
        raise BadRequestError("You cannot pay yourself")

    project = await verify_project_access(body.project_id, current_user, db)
    if body.conversation_id is not None:
        await get_conversation_for_participant(body.conversation_id, current_user, db)

    contractor = await get_user_contractor(body.payee_id, db)
    if not contractor or not contractor.stripe_account_id:
        raise BadRequestError("Professional has not set up a payment account")
    if not contractor.stripe_onboarding_complete:
        raise BadRequestError("Professional has not completed payment account onboarding")

    amount_cents = round(body.amount * 100)
    fee_cents = platform_fee_cents(body.amount)
    description = body.description or f"Payment for {project.title}"

    payment = Payment(
        project_id=project.id,
        conversation_id=body.conversation_id,
        payer_id=current_user.id,
        payee_id=body.payee_id,
        contractor_id=contractor.id,
        amount=Decimal(amount_cents) / 100,
        platform_fee=Decimal(fee_cents) / 100,
        currency="usd",
        status=PaymentStatus.PENDING.value,
        description=description,
    )
    db.add(payment)
    await db.flush()

    intent = await stripe.create_payment_intent(
        amount_cents,
        description=description,
        metadata={
            "payment_id": str(payment.id),
            "project_id": str(project.id),
            "payer_id": str(current_user.id),
            "payee_id": str(body.payee_id),
        },
        application_fee_amount=fee_cents,
        destination_account=contractor.stripe_account_id,
    )
    payment.stripe_payment_intent_id = intent["id"]
    await db.flush()
    await db.refresh(payment)

    logger.info(
        "Payment %s created: $%.2f to %s (fee $%.2f)",
        payment.id, amount_cents / 100, contractor.stripe_account_id, fee_cents / 100,
    )
    return CreatePaymentResponse(
        client_secret=intent["client_secret"],
        payment_id=payment.id,
        payment_intent_id=intent["id"],
        amount=amount_cents / 100,
        platform_fee=fee_cents / 100,
    )


@router.post("/payments/webhook")
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Handle Stripe payment intent events."""
    stripe = StripeClient()
    stripe.ensure_configured()

    payload = await request.body()
    try:
        event = stripe.verify_webhook_signature(payload, request.headers.get("stripe-signature"))
    except ValueError as e:
        logger.warning("Rejected Stripe webhook: %s", e)
        raise BadRequestError("Invalid webhook signature")

    event_type = event.get("type", "")
    intent = (event.get("data") or {}).get("object") or {}

    if event_type == "payment_intent.succeeded":
        payment = await _payment_for_intent(intent, db)
        if payment and payment.status != PaymentStatus.SUCCEEDED.value:
            payment.status = PaymentStatus.SUCCEEDED.value
            await db.flush()
            await _announce_payment(payment, db)
            logger.info("Payment %s succeeded", payment.id)
    elif event_type == "payment_intent.payment_failed":
        payment = await _payment_for_intent(intent, db)
        if payment:
            payment.status = PaymentStatus.FAILED.value
            await db.flush()
            logger.info("Payment %s failed", payment.id)
    elif event_type == "payment_intent.canceled":
        payment = await _payment_for_intent(intent, db)
        if payment:
            payment.status = PaymentStatus.CANCELED.value
            await db.flush()
    else:
        logger.debug("Ignoring Stripe event %s", event_type)

    return {"received": True}


@router.get("/projects/{project_id}/payments", response_model=list[PaymentResponse])
async def list_project_payments(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await verify_project_access(project_id, current_user, db)
    result = await db.execute(
        select(Payment)
        .where(Payment.project_id == project_id, Payment.is_deleted.is_(False))
        .order_by(Payment.created_at.desc())
    )
    return [_payment_response(p) for p in result.scalars().all()]


@router.get("/conversations/{conversation_id}/payments", response_model=list[PaymentResponse])
async def list_conversation_payments(
    conversation_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_conversation_for_participant(conversation_id, current_user, db)
    result = await db.execute(
        select(Payment)
        .where(Payment.conversation_id == conversation_id, Payment.is_deleted.is_(False))
        .order_by(Payment.created_at.desc())
    )
    return [_payment_response(p) for p in result.scalars().all()]


# ---------- Helpers ----------


async def _payment_for_intent(intent: dict, db: AsyncSession) -> Payment | None:
    intent_id = intent.get("id")
    if intent_id:
        result = await db.execute(
            select(Payment).where(
                Payment.stripe_payment_intent_id == intent_id, Payment.is_deleted.is_(False)
            )
        )
        payment = result.scalar_one_or_none()
        if payment:
            return payment

    payment_id = (intent.get("metadata") or {}).get("payment_id")
    if payment_id:
        try:
            return await db.get(Payment, uuid.UUID(payment_id))
        except ValueError:
            return None
    logger.warning("No payment found for intent %s", intent_id)
    return None


async def _announce_payment(payment: Payment, db: AsyncSession) -> None:
    if payment.conversation_id is None:
        return
    conversation = await db.get(Conversation, payment.conversation_id)
    if conversation is None or conversation.is_deleted:
        return

    amount = float(payment.amount)
    fee = float(payment.platform_fee or 0)
    content = (
        f"Payment of ${amount:,.2f} completed. "
        f"The professional receives ${amount - fee:,.2f} "
        f"after the ${fee:,.2f} platform fee ({settings.PLATFORM_FEE_PERCENT:g}%)."
    )
    await post_message(conversation, content, db, message_type=MessageType.SYSTEM)


def _payment_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse(
        id=payment.id,
        project_id=payment.project_id,
        conversation_id=payment.conversation_id,
        payer_id=payment.payer_id,
        payee_id=payment.payee_id,
        contractor_id=payment.contractor_id,
        amount=float(payment.amount),
        platform_fee=float(payment.platform_fee or 0),
        currency=payment.currency,
        status=payment.status,
        stripe_payment_intent_id=payment.stripe_payment_intent_id,
        description=payment.description,
        created_at=payment.created_at.isoformat(),
    )
