"""Health and readiness probe response schemas."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class HealthStatusResponse(SQLModel):
    """Standard payload for service liveness/readiness checks."""

    status: str = Field(
        description="Probe outcome; `healthy` when the check succeeded.",
        examples=["healthy"],
    )


class UnhealthyStatusResponse(HealthStatusResponse):
    """Readiness payload returned when the store cannot be reached."""

    error: str = Field(
        description="Driver error message from the failed store probe.",
        examples=["connection refused"],
    )
