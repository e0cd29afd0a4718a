"""
Service ORM Model
=================

A ``Service`` is something the business sells. It is the "one" side of two
one-to-many links, each held as a reference array on the service and a
single reference on the other side:

- ``lead_ids``   <->  ``Lead.service_id``
- ``client_ids`` <->  ``Client.service_id``

Both sides are written by ``crm_backend.database.core.relationships`` in
separate transactions; a crash between them leaves a detectable mismatch.
A service with a non-empty reference array cannot be deleted.
"""

import uuid
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import DateTime, Integer, TEXT, VARCHAR, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from crm_backend.database.config.connection_engine import declarativeBase
from crm_backend.database.entities.columns import reference_list_column, serialize_datetime, utc_now


class Service(declarativeBase):
    """
    ORM model for the `service` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    name : str
        Service name (4 to 100 characters).
    details : str | None
        Description (20 to 1000 characters).
    lead_ids : list[str]
        Leads interested in this service.
    client_ids : list[str]
        Clients buying this service.
    """

    __tablename__ = "service"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(VARCHAR(100), nullable=False, index=True)
    details: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    lead_ids: Mapped[List[str]] = reference_list_column()
    client_ids: Mapped[List[str]] = reference_list_column()
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __init__(self, name: str, details: Optional[str] = None):
        self.id = uuid.uuid4()
        self.name = name
        self.details = details
        self.lead_ids = []
        self.client_ids = []

    def dependents(self) -> dict:
        """Non-empty reference arrays keyed by the name used in error messages."""
        found = {}
        if self.lead_ids:
            found["leads"] = list(self.lead_ids)
        if self.client_ids:
            found["clients"] = list(self.client_ids)
        return found

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "details": self.details,
            "leads": list(self.lead_ids),
            "clients": list(self.client_ids),
            "created_at": serialize_datetime(self.created_at),
            "updated_at": serialize_datetime(self.updated_at),
        }

    def __str__(self) -> str:
        return f"Service: id:{self.id}, name: {self.name}, leads: {len(self.lead_ids)}"
