from .base import Base
from .commission import PartnerCommission
from .partner import Partner
from .payout import Payout
from .referral import PartnerReferral
from .revenue import RevenueEvent
from .submission import Submission
from .user import User

__all__ = [
    "Base",
    "User",
    "Partner",
    "PartnerReferral",
    "Submission",
    "Payout",
    "PartnerCommission",
    "RevenueEvent",
]
