"""Bonus proposal endpoints: list, search, and create."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: TC002

from app.db.session import get_session
from app.models.bonus_proposals import BonusProposal
from app.schemas.bonus_proposals import BonusProposalCreate, BonusProposalRead
from app.schemas.errors import ErrorResponse
from app.services.bonus_proposals import (
    create_proposal,
    list_proposals,
    search_proposals,
)

router = APIRouter(prefix="/bonuses", tags=["bonuses"])
SESSION_DEP = Depends(get_session)
EMPLOYEE_ID_QUERY = Query(
    default=None,
    alias="employeeID",
    description="Employee identifier to search for (required).",
    examples=["ATS0123"],
)
EMPLOYEE_NAME_QUERY = Query(
    default=None,
    alias="employeeName",
    description="Optional name that must match every stored record for the employee.",
    examples=["Veera Raghava"],
)
_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def _to_read(proposals: list[BonusProposal]) -> list[BonusProposalRead]:
    return [BonusProposalRead.model_validate(p, from_attributes=True) for p in proposals]


@router.get("", response_model=list[BonusProposalRead], responses=_ERROR_RESPONSES)
async def list_bonuses(
    session: AsyncSession = SESSION_DEP,
) -> list[BonusProposalRead]:
    """List all bonus proposals, most recent proposal date first."""
    return _to_read(await list_proposals(session))


@router.get(
    "/search",
    response_model=list[BonusProposalRead],
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    },
)
async def search_bonuses(
    employee_id: str | None = EMPLOYEE_ID_QUERY,
    employee_name: str | None = EMPLOYEE_NAME_QUERY,
    session: AsyncSession = SESSION_DEP,
) -> list[BonusProposalRead]:
    """List every proposal for one employee, rejecting a mismatched employee name."""
    proposals = await search_proposals(
        session,
        employee_id=employee_id,
        employee_name=employee_name,
    )
    return _to_read(proposals)


@router.post(
    "",
    response_model=BonusProposalRead,
    status_code=status.HTTP_201_CREATED,
    responses={**_ERROR_RESPONSES, status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}},
)
async def create_bonus(
    payload: BonusProposalCreate,
    session: AsyncSession = SESSION_DEP,
) -> BonusProposalRead:
    """Submit a bonus proposal; one per employee per calendar month."""
    proposal = await create_proposal(session, payload=payload)
    return BonusProposalRead.model_validate(proposal, from_attributes=True)
