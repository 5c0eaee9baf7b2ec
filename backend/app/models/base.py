"""Shared SQLModel base class exposing the `objects` query manager."""

from __future__ import annotations

from typing import ClassVar

from sqlmodel import SQLModel

from app.db.query_manager import ManagerDescriptor


class QueryModel(SQLModel):
    """Base for table models queried through `Model.objects`."""

    objects: ClassVar[ManagerDescriptor] = ManagerDescriptor()
