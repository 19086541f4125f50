"""SQLAlchemy model for partner commissions earned on dancer payouts."""
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, DateTime, Enum, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntPK

if TYPE_CHECKING:
    from .partner import Partner
    from .payout import Payout


class PartnerCommission(Base):
    __tablename__ = "partner_commissions"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, index=True)
    partner_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("partners.id"), nullable=False, index=True)
    # At most one commission per payout
    payout_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("payouts.id"), unique=True, nullable=False)
    dancer_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)

    dancer_payout_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False)
    commission_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(
        Enum("pending", "paid", name="commission_status_enum"),
        default="pending",
        nullable=False,
        index=True,
    )
    stripe_transfer_id: Mapped[str | None] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    paid_at: Mapped[datetime | None] = mapped_column(DateTime)

    partner: Mapped["Partner"] = relationship("Partner", back_populates="commissions")
    payout: Mapped["Payout"] = relationship("Payout")

    def __repr__(self) -> str:
        return (
            f"<PartnerCommission(payout_id={self.payout_id}, partner_id={self.partner_id}, "
            f"status='{self.status}')>"
        )
