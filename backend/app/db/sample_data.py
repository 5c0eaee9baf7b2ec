"""Sample proposals seeded into an empty table at startup."""

from __future__ import annotations

from datetime import date

from app.models.bonus_proposals import BonusProposal


def sample_proposals() -> list[BonusProposal]:
    """Return fresh, unsaved sample rows."""
    return [
        BonusProposal(
            employee_name="Veera Raghava",
            employee_id="ATS0123",
            proposal_date=date(2025, 4, 24),
            bonus_amount=5000,
            reason=(
                "Bonus for good performance and exceeding quarterly targets by 15% "
                "while maintaining excellent code quality standards."
            ),
        ),
        BonusProposal(
            employee_name="Pavan Kumar",
            employee_id="ATS0456",
            proposal_date=date(2025, 4, 20),
            bonus_amount=7500,
            reason=(
                "Exceptional leadership in the recent product launch, coordinating "
                "between multiple teams to deliver ahead of schedule with outstanding "
                "results."
            ),
        ),
    ]
