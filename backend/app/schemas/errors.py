"""Structured error payload schemas used by API responses."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class ExistingProposalRef(SQLModel):
    """Proposal that already occupies the requested employee/month slot."""

    id: int
    employee_name: str


class ErrorResponse(SQLModel):
    """Standard error envelope produced by the installed exception handlers."""

    detail: str | list[object] = Field(
        description="Error message, or the list of request validation errors.",
        examples=["All fields are required"],
    )
    correctName: str | None = Field(  # noqa: N815
        default=None,
        description="Stored name for the employee ID, sent on name mismatches.",
        examples=["Veera Raghava"],
    )
    existingProposal: ExistingProposalRef | None = Field(  # noqa: N815
        default=None,
        description="Proposal already submitted for the employee in that month.",
    )
    request_id: str | None = Field(
        default=None,
        description="Request correlation identifier injected by middleware.",
    )