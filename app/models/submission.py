"""SQLAlchemy model for dancer content submissions."""
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, DateTime, Enum, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntPK

if TYPE_CHECKING:
    from .payout import Payout
    from .user import User


class Submission(Base):
    __tablename__ = "submissions"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, index=True)
    dancer_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False, index=True)
    campaign_id: Mapped[int | None] = mapped_column(BigInteger)
    video_url: Mapped[str | None] = mapped_column(String)
    platform: Mapped[str | None] = mapped_column(String)

    review_status: Mapped[str] = mapped_column(
        Enum("pending", "approved", "rejected", name="review_status_enum"),
        default="pending",
        nullable=False,
        index=True,
    )
    submitted_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), index=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime)

    dancer: Mapped["User"] = relationship("User", back_populates="submissions")
    payout: Mapped[Optional["Payout"]] = relationship("Payout", back_populates="submission", uselist=False)

    def __repr__(self) -> str:
        return (
            f"<Submission(id={self.id}, dancer_id={self.dancer_id}, "
            f"review_status='{self.review_status}')>"
        )
