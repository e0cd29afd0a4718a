"""
Notification ORM Model
======================

The ``Notification`` model is the append-only activity feed: one row per
mutation, written after the mutation it describes. Rows only change when
``is_read`` is flipped, and only disappear through an explicit delete or the
retention sweep (see ``crm_backend.database.core.retention``).

Key features
~~~~~~~~~~~~
- ``type``: one of :class:`NotificationType`
- ``related_model`` / ``related_model_id``: tagged reference to the mutated
  document. ``related_model`` is constrained to :class:`RelatedModel`, so a
  notification can never name a domain that does not exist.
- ``created_by``: the acting user
"""

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, VARCHAR, Uuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from crm_backend.database.config.connection_engine import declarativeBase
from crm_backend.database.entities.columns import serialize_datetime, utc_now


class NotificationType(str, enum.Enum):
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    CONVERT = "convert"
    ADD = "add"
    REMOVE = "remove"
    ASSIGN = "assign"


class RelatedModel(str, enum.Enum):
    """Domains a notification can point at."""

    USER = "User"
    SERVICE = "Service"
    LEAD = "Lead"
    CLIENT = "Client"
    BLOG = "Blog"
    ANNOUNCEMENT = "Announcement"
    FAQ = "FAQ"
    FILE = "File"


@dataclass(frozen=True)
class RelatedRef:
    """
    Typed reference to the document a notification describes.

    ``id`` is ``None`` for bulk operations that touch several documents.
    """

    model: RelatedModel
    id: Optional[UUID] = None

    def __post_init__(self):
        object.__setattr__(self, "model", RelatedModel(self.model))
        if self.id is not None and not isinstance(self.id, UUID):
            object.__setattr__(self, "id", UUID(str(self.id)))


class Notification(declarativeBase):
    """
    ORM model for the `notification` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    details : str
        Human readable description (5 to 200 characters).
    type : NotificationType
        What happened.
    related_model : RelatedModel
        Domain of the mutated document.
    related_model_id : UUID | None
        Identifier of the mutated document, None for bulk operations.
    created_by : UUID
        Acting user.
    is_read : bool
        Read flag, the only mutable field.
    created_at : datetime
        Insert time; the retention sweep compares against it.
    """

    __tablename__ = "notification"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    details: Mapped[str] = mapped_column(VARCHAR(200), nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, values_callable=lambda members: [m.value for m in members], native_enum=False),
        nullable=False,
        index=True,
    )
    related_model: Mapped[RelatedModel] = mapped_column(
        Enum(RelatedModel, values_callable=lambda members: [m.value for m in members], native_enum=False),
        nullable=False,
    )
    related_model_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    created_by: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False, index=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, index=True)

    def __init__(
        self,
        details: str,
        type: NotificationType,
        related: RelatedRef,
        created_by: UUID,
        created_at: Optional[datetime] = None,
    ):
        self.id = uuid.uuid4()
        self.details = details
        self.type = NotificationType(type)
        self.related_model = related.model
        self.related_model_id = related.id
        self.created_by = created_by
        self.is_read = False
        self.created_at = created_at or utc_now()

    @validates("details")
    def validate_details(self, key, value):
        value = (value or "").strip()
        if not 5 <= len(value) <= 200:
            raise ValueError("Notification details must be between 5 and 200 characters")
        return value

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "details": self.details,
            "type": self.type.value,
            "related_model": self.related_model.value,
            "related_model_id": str(self.related_model_id) if self.related_model_id else None,
            "created_by": str(self.created_by),
            "is_read": self.is_read,
            "created_at": serialize_datetime(self.created_at),
        }

    def __str__(self) -> str:
        return f"Notification: {self.type.value} {self.related_model.value}:{self.related_model_id} by {self.created_by}"
