"""Bonus proposal table with per-employee monthly uniqueness."""

from __future__ import annotations

from datetime import date

from sqlalchemy import CheckConstraint, Column, Index, Text, extract
from sqlmodel import Field, col

from app.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (date,)

MIN_BONUS_AMOUNT = 100
EMPLOYEE_NAME_MAX_LENGTH = 100
EMPLOYEE_ID_LENGTH = 7


class BonusProposal(QueryModel, table=True):
    """A single bonus recommendation for one employee in one calendar month."""

    __tablename__ = "bonus_proposals"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        CheckConstraint(
            "employee_id ~ '^ATS0(?!000)[0-9]{3}$'",
            name="valid_employee_id",
        ).ddl_if(dialect="postgresql"),
        CheckConstraint(
            "employee_id GLOB 'ATS0[0-9][0-9][0-9]' AND employee_id <> 'ATS0000'",
            name="valid_employee_id",
        ).ddl_if(dialect="sqlite"),
        CheckConstraint(
            f"bonus_amount >= {MIN_BONUS_AMOUNT}",
            name="valid_bonus_amount",
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    employee_name: str = Field(max_length=EMPLOYEE_NAME_MAX_LENGTH)
    employee_id: str = Field(max_length=EMPLOYEE_ID_LENGTH, index=True)
    proposal_date: date
    bonus_amount: int
    reason: str = Field(sa_column=Column(Text, nullable=False))


# One proposal per employee per calendar month; the authoritative duplicate check.
Index(
    "unique_employee_per_month",
    col(BonusProposal.employee_id),
    extract("year", col(BonusProposal.proposal_date)),
    extract("month", col(BonusProposal.proposal_date)),
    unique=True,
)
