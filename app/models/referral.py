"""SQLAlchemy model for PartnerReferral (partner -> referred dancer)."""
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntPK

if TYPE_CHECKING:
    from .partner import Partner
    from .user import User


class PartnerReferral(Base):
    __tablename__ = "partner_referrals"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, index=True)
    partner_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("partners.id"), nullable=False, index=True)
    # A dancer has at most one referring partner
    dancer_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), unique=True, nullable=False)
    linked_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    partner: Mapped["Partner"] = relationship("Partner", back_populates="referrals")
    dancer: Mapped["User"] = relationship("User", back_populates="referral")

    def __repr__(self) -> str:
        return f"<PartnerReferral(partner_id={self.partner_id}, dancer_id={self.dancer_id})>"
