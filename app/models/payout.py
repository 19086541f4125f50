"""SQLAlchemy model for dancer Payouts."""
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, DateTime, Enum, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntPK

if TYPE_CHECKING:
    from .submission import Submission
    from .user import User


class Payout(Base):
    __tablename__ = "payouts"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, index=True)
    submission_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("submissions.id"), unique=True, nullable=False)
    dancer_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False, index=True)

    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(
        Enum("pending", "completed", "failed", name="payout_status_enum"),
        default="pending",
        nullable=False,
        index=True,
    )
    stripe_transfer_id: Mapped[str | None] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)

    # Relations
    submission: Mapped["Submission"] = relationship("Submission", back_populates="payout")
    dancer: Mapped["User"] = relationship("User")

    def __repr__(self) -> str:
        return (
            f"<Payout(submission_id={self.submission_id}, dancer_id={self.dancer_id}, "
            f"status='{self.status}')>"
        )
