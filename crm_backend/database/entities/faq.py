import uuid
from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, TEXT, VARCHAR, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from crm_backend.database.config.connection_engine import declarativeBase
from crm_backend.database.entities.columns import serialize_datetime, utc_now


class FAQ(declarativeBase):
    """ORM model for the `faq` table."""

    __tablename__ = "faq"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    question: Mapped[str] = mapped_column(VARCHAR(100), nullable=False, index=True)
    answer: Mapped[str] = mapped_column(TEXT, nullable=False)
    created_by: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "question": self.question,
            "answer": self.answer,
            "created_by": str(self.created_by),
            "created_at": serialize_datetime(self.created_at),
            "updated_at": serialize_datetime(self.updated_at),
        }
