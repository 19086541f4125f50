from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.services.commission_tiers import parse_commission_tiers


class TokenData(BaseModel):
    username: str | None = None
    scopes: list[str] = []

class Token(BaseModel):
    access_token: str
    token_type: str

# Partners
class PartnerStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"

class PartnerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    referral_code: str | None = Field(default=None, min_length=4, max_length=32)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name must not be blank")
        return v.strip()

class PartnerUpdate(BaseModel):
    status: PartnerStatus | None = None
    stripe_account_id: str | None = Field(default=None, description="Empty string clears the account")
    commission_tiers: list[list[Any]] | None = Field(
        default=None,
        description="[[min_active_dancers, rate], ...]; empty list restores default tiers",
    )

    @field_validator("stripe_account_id")
    @classmethod
    def stripe_account_format(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if v and not v.startswith("acct_"):
            raise ValueError("Stripe account id must start with 'acct_'")
        return v

    @field_validator("commission_tiers")
    @classmethod
    def tiers_valid(cls, v: list[list[Any]] | None) -> list[list[Any]] | None:
        if v:
            parse_commission_tiers(v)
        return v

class PartnerResponse(BaseModel):
    id: int
    name: str
    email: str
    referral_code: str
    status: PartnerStatus
    stripe_account_id: str | None = None
    stripe_onboarded: bool
    commission_tiers: list[list[Any]]
    dancer_count: int
    active_dancer_count: int
    current_rate: Decimal
    pending_commission_cents: int
    paid_commission_cents: int
    created_at: datetime | None = None

class ReferralCreate(BaseModel):
    referral_code: str = Field(..., min_length=1)
    dancer_id: int

class ReferralResponse(BaseModel):
    id: int
    partner_id: int
    dancer_id: int
    linked_at: datetime | None = None

    class Config:
        from_attributes = True

# Commissions
class CommissionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"

class CommissionResponse(BaseModel):
    id: int
    partner_id: int
    payout_id: int
    dancer_id: int
    dancer_payout_cents: int
    commission_rate: Decimal
    commission_cents: int
    status: CommissionStatus
    stripe_transfer_id: str | None = None
    created_at: datetime | None = None
    paid_at: datetime | None = None
    rate_label: str | None = None

    class Config:
        from_attributes = True

class CommissionOutcomeResponse(BaseModel):
    status: str
    commission_id: int | None = None
    commission_cents: int | None = None
    reason: str | None = None

# Dancer payouts
class PayoutStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

class PayoutCreate(BaseModel):
    submission_id: int
    amount_cents: int = Field(..., gt=0)

class PayoutResponse(BaseModel):
    id: int
    submission_id: int
    dancer_id: int
    amount_cents: int
    status: PayoutStatus
    stripe_transfer_id: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None

    class Config:
        from_attributes = True

class PayoutCreateResponse(BaseModel):
    payout: PayoutResponse
    commission: CommissionOutcomeResponse

# Submissions
class SubmissionResponse(BaseModel):
    id: int
    dancer_id: int
    campaign_id: int | None = None
    video_url: str | None = None
    platform: str | None = None
    review_status: str
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None

    class Config:
        from_attributes = True

# Revenue
class RevenueEventResponse(BaseModel):
    id: int
    track_title: str | None = None
    producer_name: str | None = None
    gross_revenue: Decimal
    platform_fee: Decimal
    net_revenue: Decimal
    producer_amount: Decimal | None = None
    platform_amount: Decimal | None = None
    payout_status: str | None = None
    created_at: datetime | None = None
    net_consistent: bool
    net_exact: bool
    expected_net_revenue: Decimal
    net_discrepancy_cents: int

class RevenueListResponse(BaseModel):
    events: list[RevenueEventResponse]
    flagged_count: int

class CommissionRateResponse(BaseModel):
    active_dancers: int
    rate: Decimal
    rate_label: str
