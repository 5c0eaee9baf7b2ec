"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from app.models.bonus_proposals import BonusProposal

__all__ = [
    "BonusProposal",
]
