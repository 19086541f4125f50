"""SQLAlchemy model for User."""
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Enum, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntPK

if TYPE_CHECKING:
    from .referral import PartnerReferral
    from .submission import Submission


class User(Base):
    __tablename__ = 'users'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, index=True)
    role: Mapped[str] = mapped_column(
        Enum('dancer', 'producer', 'partner', 'admin', name='user_role_enum'),
        default='dancer',
        nullable=False,
        index=True,
    )
    full_name: Mapped[str | None] = mapped_column(String)
    email: Mapped[str | None] = mapped_column(String, unique=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    # Admin panel login
    username: Mapped[str | None] = mapped_column(String, unique=True, index=True)
    hashed_password: Mapped[str | None] = mapped_column(String)

    # Stripe Connect payout destination
    stripe_account_id: Mapped[str | None] = mapped_column(String)
    stripe_onboarded: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    submissions: Mapped[list["Submission"]] = relationship("Submission", back_populates="dancer")
    referral: Mapped[Optional["PartnerReferral"]] = relationship(
        "PartnerReferral", back_populates="dancer", uselist=False
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role='{self.role}')>"
