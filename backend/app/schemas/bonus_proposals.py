"""Bonus proposal API schemas for create and read operations."""

from __future__ import annotations

from datetime import date

from pydantic import Field, field_validator
from sqlmodel import SQLModel
from sqlmodel._compat import SQLModelConfig

RUNTIME_ANNOTATION_TYPES = (date,)


class BonusProposalCreate(SQLModel):
    """Payload for submitting a bonus proposal.

    Every field is optional at the schema level so that missing or blank
    values reach the service and are reported as a single
    "All fields are required" error rather than per-field validation errors.
    """

    model_config = SQLModelConfig(populate_by_name=True)

    employee_name: str | None = Field(
        default=None,
        alias="employeeName",
        description="Employee full name; must match earlier submissions for the same ID.",
        examples=["Veera Raghava"],
    )
    employee_id: str | None = Field(
        default=None,
        alias="employeeID",
        description="Employee identifier in the form ATS0XXX where XXX is 001-999.",
        examples=["ATS0123"],
    )
    proposal_date: str | None = Field(
        default=None,
        alias="proposalDate",
        description="Proposal date (YYYY-MM-DD). One proposal per employee per calendar month.",
        examples=["2025-04-24"],
    )
    bonus_amount: int | None = Field(
        default=None,
        alias="bonusAmount",
        description="Bonus amount; at least 100.",
        examples=[5000],
    )
    reason: str | None = Field(
        default=None,
        description="Justification for the bonus.",
        examples=["Exceeded quarterly targets by 15%."],
    )

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class BonusProposalRead(SQLModel):
    """Bonus proposal payload returned by read endpoints."""

    id: int
    employee_name: str
    employee_id: str
    proposal_date: date
    bonus_amount: int
    reason: str
