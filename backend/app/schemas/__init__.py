"""Public schema exports shared across API route modules."""

from app.schemas.bonus_proposals import BonusProposalCreate, BonusProposalRead
from app.schemas.errors import ErrorResponse
from app.schemas.health import HealthStatusResponse, UnhealthyStatusResponse

__all__ = [
    "BonusProposalCreate",
    "BonusProposalRead",
    "ErrorResponse",
    "HealthStatusResponse",
    "UnhealthyStatusResponse",
]
