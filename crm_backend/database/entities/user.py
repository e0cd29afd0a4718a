"""
User ORM Model
==============

The ``User`` ORM model represents a registered account. It maps to the
``app_user`` table and holds credentials, profile data, the account
activation code and the password reset token.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Unique email, optional telephone
- bcrypt password hash (never the plaintext)
- One-time activation code with an expiry (``otp_code`` / ``otp_expiry``)
- Password reset token stored as a SHA-256 digest with an expiry
- Avatar as an asset reference (``image``: public URL in the bucket)
- Optimistic concurrency through ``version``
"""

import uuid
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import VARCHAR, Boolean, TEXT, DateTime, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from crm_backend.database.config.connection_engine import declarativeBase
from crm_backend.database.entities.columns import serialize_datetime, utc_now


class User(declarativeBase):
    """
    ORM model for the `app_user` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    fullname : str
        Display name, stored lowercase.
    email : str
        Unique, lowercase email address.
    password : str
        bcrypt hash of the password.
    role : str
        Free-form role label (e.g. "admin", "sales").
    city, country, telephone : str | None
        Optional profile data.
    image : str | None
        Public URL of the avatar in the bucket.
    verified : bool
        Whether the activation code has been confirmed.
    otp_code, otp_expiry :
        Pending activation code and its expiry.
    reset_password_token, reset_password_expiry :
        Digest of the pending reset token and its expiry.
    """

    __tablename__ = "app_user"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    """Primary key. UUID of the user."""

    fullname: Mapped[str] = mapped_column(VARCHAR(50), nullable=False)
    """Full name of the user (lowercase)."""

    email: Mapped[str] = mapped_column(VARCHAR(50), nullable=False, unique=True, index=True)
    """Email address of the user; unique."""

    password: Mapped[str] = mapped_column(TEXT, nullable=False)
    """Hashed password of the user."""

    role: Mapped[str] = mapped_column(TEXT, nullable=False)
    """Role assigned to the user."""

    city: Mapped[Optional[str]] = mapped_column(VARCHAR(100), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(VARCHAR(56), nullable=True)
    telephone: Mapped[Optional[str]] = mapped_column(VARCHAR(15), nullable=True, index=True)

    image: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    """Public URL of the avatar."""

    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Boolean flag indicating if the user has been verified."""

    otp_code: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    otp_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    reset_password_token: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True, index=True)
    reset_password_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    """Version counter checked on every update."""

    __mapper_args__ = {"version_id_col": version}

    def __init__(
        self,
        fullname: str,
        email: str,
        password: str,
        role: str,
        country: Optional[str] = None,
        city: Optional[str] = None,
        telephone: Optional[str] = None,
    ):
        """
        Initialize a new User object.

        Parameters
        ----------
        fullname : str
            Full name, lowercased on the way in.
        email : str
            Email address, lowercased on the way in.
        password : str
            Already-hashed password.
        role : str
            Role of the user.
        country, city, telephone : str | None
            Optional profile data.
        """
        self.id = uuid.uuid4()
        self.fullname = fullname.strip().lower()
        self.email = email.strip().lower()
        self.password = password
        self.role = role
        self.country = country.lower() if country else None
        self.city = city.lower() if city else None
        self.telephone = telephone
        self.verified = False

    def to_dict(self) -> dict:
        """Public view of the user (no password, codes or tokens)."""
        return {
            "id": str(self.id),
            "fullname": self.fullname,
            "email": self.email,
            "role": self.role,
            "city": self.city,
            "country": self.country,
            "telephone": self.telephone,
            "image": self.image,
            "verified": self.verified,
            "created_at": serialize_datetime(self.created_at),
            "updated_at": serialize_datetime(self.updated_at),
        }

    def __str__(self) -> str:
        return f"User: id:{self.id}, fullname: {self.fullname}, email: {self.email}"
