"""
Client ORM Model
================

A paying customer owned by one user. Clients are created directly or by
converting a lead, hold a list of stored files (public URLs) and optionally
reference the service they buy (mirrored in ``Service.client_ids``).
"""

import uuid
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, TEXT, VARCHAR, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from crm_backend.database.config.connection_engine import declarativeBase
from crm_backend.database.entities.columns import reference_list_column, serialize_datetime, utc_now


class Client(declarativeBase):
    """
    ORM model for the `client` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    fullname, email, country : str
        Required identity fields; email is unique and lowercase.
    details, telephone, city, company, lead_source : str | None
        Optional data.
    files : list[str]
        Asset references (public URLs) attached to the client.
    owner_id : UUID
        User the client belongs to; only the owner may edit or delete it.
    service_id : UUID | None
        Service the client buys.
    """

    __tablename__ = "client"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    fullname: Mapped[str] = mapped_column(VARCHAR(100), nullable=False, index=True)
    details: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    email: Mapped[str] = mapped_column(VARCHAR(50), nullable=False, unique=True, index=True)
    telephone: Mapped[Optional[str]] = mapped_column(VARCHAR(20), nullable=True, index=True)
    city: Mapped[Optional[str]] = mapped_column(VARCHAR(100), nullable=True)
    country: Mapped[str] = mapped_column(VARCHAR(60), nullable=False)
    company: Mapped[Optional[str]] = mapped_column(VARCHAR(100), nullable=True)
    lead_source: Mapped[Optional[str]] = mapped_column(VARCHAR(20), nullable=True)
    files: Mapped[List[str]] = reference_list_column()
    owner_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False, index=True)
    service_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __init__(
        self,
        fullname: str,
        email: str,
        country: str,
        owner_id: UUID,
        details: Optional[str] = None,
        telephone: Optional[str] = None,
        city: Optional[str] = None,
        company: Optional[str] = None,
        lead_source: Optional[str] = None,
        service_id: Optional[UUID] = None,
    ):
        self.id = uuid.uuid4()
        self.fullname = fullname
        self.email = email.strip().lower()
        self.country = country
        self.owner_id = owner_id
        self.details = details
        self.telephone = telephone
        self.city = city
        self.company = company
        self.lead_source = lead_source
        self.service_id = service_id
        self.files = []

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "fullname": self.fullname,
            "details": self.details,
            "email": self.email,
            "telephone": self.telephone,
            "city": self.city,
            "country": self.country,
            "company": self.company,
            "lead_source": self.lead_source,
            "files": list(self.files),
            "owner": str(self.owner_id),
            "service": str(self.service_id) if self.service_id else None,
            "created_at": serialize_datetime(self.created_at),
            "updated_at": serialize_datetime(self.updated_at),
        }

    def __str__(self) -> str:
        return f"Client: id:{self.id}, fullname: {self.fullname}, owner: {self.owner_id}"
