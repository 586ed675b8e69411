import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from terrin.db.base import BaseModel


class Estimate(BaseModel):
    __tablename__ = "estimates"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    project_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    input_data: Mapped[dict | None] = mapped_column(JSONB, nullable=True, default=dict)
    timeline: Mapped[str | None] = mapped_column(String(100), nullable=True)
    total_cost_min: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_cost_max: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    materials_cost_min: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"))
    materials_cost_max: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"))
    labor_cost_min: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"))
    labor_cost_max: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"))
    permits_cost_min: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"))
    permits_cost_max: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"))
    contingency_cost_min: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"))
    contingency_cost_max: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"))
    ai_analysis: Mapped[dict | None] = mapped_column(JSONB, nullable=True, default=dict)
    trade_breakdowns: Mapped[list | None] = mapped_column(JSONB, nullable=True, default=list)
