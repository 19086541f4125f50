"""SQLAlchemy model for Partner."""
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, Enum, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntPK

if TYPE_CHECKING:
    from .commission import PartnerCommission
    from .referral import PartnerReferral


class Partner(Base):
    __tablename__ = "partners"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, index=True)
    user_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("users.id"), unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    referral_code: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    status: Mapped[str] = mapped_column(
        Enum("active", "suspended", name="partner_status_enum"),
        default="active",
        nullable=False,
    )

    stripe_account_id: Mapped[str | None] = mapped_column(String)
    stripe_onboarded: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # [[min_active_dancers, rate], ...]; NULL means the default tier table
    commission_tiers: Mapped[list[Any] | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    referrals: Mapped[list["PartnerReferral"]] = relationship("PartnerReferral", back_populates="partner")
    commissions: Mapped[list["PartnerCommission"]] = relationship("PartnerCommission", back_populates="partner")

    @property
    def has_verified_payout_destination(self) -> bool:
        return bool(self.stripe_account_id) and bool(self.stripe_onboarded)

    def __repr__(self) -> str:
        return f"<Partner(id={self.id}, referral_code='{self.referral_code}')>"
