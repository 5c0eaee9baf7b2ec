"""Bonus proposal validation, conflict detection, and persistence."""

from __future__ import annotations

import re
from datetime import date
from typing import TYPE_CHECKING

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import col

from app.core.logging import get_logger
from app.core.time import month_bounds
from app.models.bonus_proposals import EMPLOYEE_NAME_MAX_LENGTH, MIN_BONUS_AMOUNT, BonusProposal

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from app.schemas.bonus_proposals import BonusProposalCreate

logger = get_logger(__name__)

# Mirrors the valid_employee_id check constraint on bonus_proposals.
EMPLOYEE_ID_PATTERN = re.compile(r"ATS0(?!000)[0-9]{3}")
_UNIQUE_VIOLATION_SQLSTATE = "23505"


def is_valid_employee_id(employee_id: str) -> bool:
    return EMPLOYEE_ID_PATTERN.fullmatch(employee_id) is not None


def names_match(left: str, right: str) -> bool:
    """Compare employee names case-insensitively."""
    return left.casefold() == right.casefold()


def is_unique_violation(exc: IntegrityError) -> bool:
    """Tell a unique-index rejection apart from other integrity failures."""
    orig = exc.orig
    if getattr(orig, "sqlstate", None) == _UNIQUE_VIOLATION_SQLSTATE:
        return True
    if getattr(orig, "pgcode", None) == _UNIQUE_VIOLATION_SQLSTATE:
        return True
    return "UNIQUE constraint failed" in str(orig)


def _bad_request(detail: str | dict[str, object]) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _server_error(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


def _parse_proposal_date(raw: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise _bad_request(
            "Proposal date must be a valid date in YYYY-MM-DD format",
        ) from None


def _name_mismatch(employee_id: str, stored_name: str) -> HTTPException:
    return _bad_request(
        {
            "message": f"Employee ID {employee_id} is associated with {stored_name}",
            "correctName": stored_name,
        },
    )


async def list_proposals(session: AsyncSession) -> list[BonusProposal]:
    """Return every proposal, most recent proposal date first."""
    try:
        return await BonusProposal.objects.all().order_by(
            col(BonusProposal.proposal_date).desc(),
        ).all(session)
    except SQLAlchemyError:
        logger.exception("bonus.list.failed")
        raise _server_error("Server error while fetching bonuses") from None


async def search_proposals(
    session: AsyncSession,
    *,
    employee_id: str | None,
    employee_name: str | None = None,
) -> list[BonusProposal]:
    """Return all proposals for an employee, checking the caller's name if given.

    A supplied name that disagrees with any stored record rejects the whole
    request and reports the stored name of the most recent record.
    """
    if not employee_id:
        raise _bad_request("Employee ID is required")

    try:
        proposals = await BonusProposal.objects.filter_by(employee_id=employee_id).order_by(
            col(BonusProposal.proposal_date).desc(),
        ).all(session)
    except SQLAlchemyError:
        logger.exception("bonus.search.failed", extra={"employee_id": employee_id})
        raise _server_error("Server error while searching bonuses") from None

    if not proposals:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No matching bonus proposals found",
        )

    if employee_name:
        if any(not names_match(p.employee_name, employee_name) for p in proposals):
            existing_name = proposals[0].employee_name
            raise _bad_request(
                {
                    "message": (
                        f"Employee ID {employee_id} is associated with {existing_name}. "
                        "Please use the correct employee name."
                    ),
                    "correctName": existing_name,
                },
            )
    return proposals


def validate_create_payload(payload: BonusProposalCreate) -> tuple[str, str, date, int, str]:
    """Run the stateless create checks, returning the field values to store."""
    if (
        not payload.employee_name
        or not payload.employee_id
        or not payload.proposal_date
        or not payload.bonus_amount
        or not payload.reason
    ):
        raise _bad_request("All fields are required")

    if payload.bonus_amount < MIN_BONUS_AMOUNT:
        raise _bad_request(f"Bonus amount must be at least {MIN_BONUS_AMOUNT}")

    employee_id = payload.employee_id
    if not is_valid_employee_id(employee_id):
        raise _bad_request("Employee ID must be in format ATS0XXX where XXX is 001-999")

    employee_name = payload.employee_name
    if len(employee_name) > EMPLOYEE_NAME_MAX_LENGTH:
        raise _bad_request(
            f"Employee name must be at most {EMPLOYEE_NAME_MAX_LENGTH} characters",
        )

    proposal_date = _parse_proposal_date(payload.proposal_date)
    return (
        employee_name,
        employee_id,
        proposal_date,
        payload.bonus_amount,
        payload.reason,
    )


async def find_proposal_in_month(
    session: AsyncSession,
    *,
    employee_id: str,
    proposal_date: date,
) -> BonusProposal | None:
    start, end = month_bounds(proposal_date)
    return await BonusProposal.objects.filter_by(employee_id=employee_id).filter(
        col(BonusProposal.proposal_date) >= start,
        col(BonusProposal.proposal_date) < end,
    ).first(session)


async def find_latest_proposal(
    session: AsyncSession,
    *,
    employee_id: str,
) -> BonusProposal | None:
    return await BonusProposal.objects.filter_by(employee_id=employee_id).order_by(
        col(BonusProposal.proposal_date).desc(),
    ).first(session)


async def create_proposal(
    session: AsyncSession,
    *,
    payload: BonusProposalCreate,
) -> BonusProposal:
    """Validate and persist a new proposal.

    The month lookup only rejects early; concurrent submissions can both pass
    it, and the unique index decides which insert wins.
    """
    employee_name, employee_id, proposal_date, bonus_amount, reason = validate_create_payload(
        payload,
    )

    try:
        existing = await find_proposal_in_month(
            session,
            employee_id=employee_id,
            proposal_date=proposal_date,
        )
        if existing is not None:
            raise _bad_request(
                {
                    "message": "Employee has already been submitted for this month",
                    "existingProposal": {
                        "id": existing.id,
                        "employee_name": existing.employee_name,
                    },
                },
            )

        latest = await find_latest_proposal(session, employee_id=employee_id)
        if latest is not None and not names_match(latest.employee_name, employee_name):
            raise _name_mismatch(employee_id, latest.employee_name)

        proposal = BonusProposal(
            employee_name=employee_name,
            employee_id=employee_id,
            proposal_date=proposal_date,
            bonus_amount=bonus_amount,
            reason=reason,
        )
        session.add(proposal)
        await session.commit()
        await session.refresh(proposal)
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            logger.warning(
                "bonus.create.duplicate",
                extra={"employee_id": employee_id, "proposal_date": proposal_date.isoformat()},
            )
            raise _bad_request("Duplicate entry detected") from None
        logger.exception("bonus.create.failed", extra={"employee_id": employee_id})
        raise _server_error("Server error while creating bonus") from None
    except SQLAlchemyError:
        logger.exception("bonus.create.failed", extra={"employee_id": employee_id})
        raise _server_error("Server error while creating bonus") from None

    logger.info(
        "bonus.create.success",
        extra={"proposal_id": proposal.id, "employee_id": employee_id},
    )
    return proposal
