"""
Blog ORM Model
==============

A blog post with a thumbnail and a list of content blocks. The thumbnail and
each block's ``image`` are asset references: public URLs of objects in the
bucket, written only after the object has been stored.
"""

import uuid
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, TEXT, VARCHAR, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from crm_backend.database.config.connection_engine import declarativeBase
from crm_backend.database.entities.columns import serialize_datetime, utc_now


class Blog(declarativeBase):
    """
    ORM model for the `blog` table.

    Attributes
    ----------
    title : str
        Post title (4 to 100 characters).
    intro_description : str
        Lead paragraph.
    thumbnail : str | None
        Public URL of the thumbnail.
    content_blocks : list[dict]
        ``{"title", "details", "image"}`` blocks in display order.
    tags : list[str]
        Free-form tags.
    author_id : UUID
        Only the author may edit or delete the post.
    """

    __tablename__ = "blog"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(VARCHAR(100), nullable=False, index=True)
    intro_description: Mapped[str] = mapped_column(TEXT, nullable=False)
    thumbnail: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    content_blocks: Mapped[List[dict]] = mapped_column(JSON, nullable=False, default=list)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    author_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def assets(self) -> List[str]:
        """Every asset reference held by the post."""
        urls = [self.thumbnail] if self.thumbnail else []
        urls.extend(block["image"] for block in self.content_blocks if block.get("image"))
        return urls

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "title": self.title,
            "intro_description": self.intro_description,
            "thumbnail": self.thumbnail,
            "content_blocks": list(self.content_blocks),
            "tags": list(self.tags),
            "author": str(self.author_id),
            "created_at": serialize_datetime(self.created_at),
            "updated_at": serialize_datetime(self.updated_at),
        }
