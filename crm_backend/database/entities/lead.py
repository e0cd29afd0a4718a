"""
Lead ORM Model
==============

A prospective customer. ``service_id`` is the single-reference side of the
Service <-> Lead link (see ``Service.lead_ids``); it is not a foreign key so
that a half-applied link stays visible instead of being rejected.
"""

import uuid
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, Integer, TEXT, VARCHAR, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from crm_backend.database.config.connection_engine import declarativeBase
from crm_backend.database.entities.columns import serialize_datetime, utc_now


class Lead(declarativeBase):
    """
    ORM model for the `lead` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    fullname : str
        Name of the lead.
    message : str | None
        What the lead asked for.
    email : str
        Unique, lowercase email.
    telephone, city, company : str | None
        Optional contact data.
    country : str
        Country of the lead.
    lead_source : str | None
        Channel the lead came from.
    service_id : UUID | None
        Service the lead is interested in.
    """

    __tablename__ = "lead"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    fullname: Mapped[str] = mapped_column(VARCHAR(100), nullable=False, index=True)
    message: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    email: Mapped[str] = mapped_column(VARCHAR(50), nullable=False, unique=True, index=True)
    telephone: Mapped[Optional[str]] = mapped_column(VARCHAR(20), nullable=True, index=True)
    city: Mapped[Optional[str]] = mapped_column(VARCHAR(100), nullable=True)
    country: Mapped[str] = mapped_column(VARCHAR(60), nullable=False)
    company: Mapped[Optional[str]] = mapped_column(VARCHAR(100), nullable=True)
    lead_source: Mapped[Optional[str]] = mapped_column(VARCHAR(20), nullable=True)
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
        message: Optional[str] = None,
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
        self.message = message
        self.telephone = telephone
        self.city = city
        self.company = company
        self.lead_source = lead_source
        self.service_id = service_id

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "fullname": self.fullname,
            "message": self.message,
            "email": self.email,
            "telephone": self.telephone,
            "city": self.city,
            "country": self.country,
            "company": self.company,
            "lead_source": self.lead_source,
            "service": str(self.service_id) if self.service_id else None,
            "created_at": serialize_datetime(self.created_at),
            "updated_at": serialize_datetime(self.updated_at),
        }

    def __str__(self) -> str:
        return f"Lead: id:{self.id}, fullname: {self.fullname}, service: {self.service_id}"
