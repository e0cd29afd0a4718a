import uuid
from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, VARCHAR, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from crm_backend.database.config.connection_engine import declarativeBase
from crm_backend.database.entities.columns import serialize_datetime, utc_now


class StoredFile(declarativeBase):
    """
    ORM model for the `stored_file` table: one object a user uploaded through
    the storage routes.

    The row is what puts an object in a user's storage. Objects attached to
    clients, blog posts or avatars have no row, so the storage routes never
    reach them.

    Attributes
    ----------
    key : str
        Bucket key (``<folder>/<epoch-ms>-<name>``), unique.
    owner_id : UUID
        Uploader.
    size : int
        Size in bytes at upload time.
    """

    __tablename__ = "stored_file"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    key: Mapped[str] = mapped_column(VARCHAR(500), nullable=False, unique=True, index=True)
    owner_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False, index=True)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "key": self.key,
            "owner_id": str(self.owner_id),
            "size": self.size,
            "created_at": serialize_datetime(self.created_at),
        }
