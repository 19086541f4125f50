"""SQLAlchemy model for track revenue events (as supplied by the revenue feed)."""
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, BigIntPK


class RevenueEvent(Base):
    __tablename__ = "revenue_events"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, index=True)
    track_title: Mapped[str | None] = mapped_column(String)
    producer_name: Mapped[str | None] = mapped_column(String)

    # Decimal dollars; see app.services.reconciliation for the cents boundary
    gross_revenue: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    platform_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    net_revenue: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    producer_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    platform_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    payout_status: Mapped[str | None] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), index=True)

    def __repr__(self) -> str:
        return f"<RevenueEvent(id={self.id}, net_revenue={self.net_revenue})>"
