"""
Pydantic models used for request validation and API data contracts.

Every request body is a :class:`RequestSchema`. Its fields are optional at the
pydantic level so that a missing field never short-circuits validation;
``collect_errors()`` then reports every missing or malformed field at once,
and the mutation protocol turns the list into a single 400 response.
"""

import re
from typing import ClassVar, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from crm_backend.crypt.encrypt_decrypt import EncryptionDec

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
EMAIL_MAX_LENGTH = 50

PASSWORD_POLICY_MESSAGE = (
    "Password is invalid. Must contain at least 1 lowercase, 1 uppercase, 1 digit, and 1 special character."
)

LEAD_SOURCES = ("Google", "Email", "Phone", "Website", "Referral", "Facebook", "TikTok", "Instagram", "Other")
"""Channels a lead can come from."""

CLIENT_SOURCES = ("Email", "Phone", "Website", "Referral", "Social Media", "Other")
"""Channels a client can come from."""


def parse_id(value) -> Optional[UUID]:
    """Parse an identifier, returning None when it is not a valid UUID."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def is_blank(value) -> bool:
    return value is None or (isinstance(value, (str, list)) and len(value) == 0)


def length_error(value: Optional[str], label: str, minimum: int, maximum: int) -> Optional[str]:
    if not value:
        return None
    if len(value) < minimum:
        return f"Minimum characters required for {label} is {minimum}"
    if len(value) > maximum:
        return f"Maximum characters required for {label} is {maximum}"
    return None


def email_error(value: Optional[str]) -> Optional[str]:
    if value and not EMAIL_PATTERN.match(value):
        return "Please provide a valid email"
    if value and len(value) > EMAIL_MAX_LENGTH:
        return f"Maximum characters required for email is {EMAIL_MAX_LENGTH}"
    return None


class RequestSchema(BaseModel):
    """
    Base request schema with the batched-error contract.

    ``required_fields`` maps field names to the message reported when the
    field is missing or empty; ``field_errors`` adds shape checks on the
    fields that are present.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    required_fields: ClassVar[Dict[str, str]] = {}

    def collect_errors(self) -> List[str]:
        errors = [message for field, message in self.required_fields.items() if is_blank(getattr(self, field))]
        errors.extend(error for error in self.field_errors() if error)
        return errors

    def field_errors(self) -> List[Optional[str]]:
        return []

    def changes(self) -> dict:
        """Fields explicitly sent by the client (used by partial edits)."""
        return self.model_dump(exclude_unset=True)


# -- Users -------------------------------------------------------------------


class UserData(RequestSchema):
    """
    Represents data required to register a new user.
    """

    required_fields: ClassVar[Dict[str, str]] = {
        "fullname": "Fullname is required",
        "email": "Email is required",
        "password": "Password is required",
        "role": "User's role is required",
        "country": "Country is required",
    }

    fullname: Optional[str] = None
    """Display name."""
    email: Optional[str] = None
    """Email address of the user."""
    password: Optional[str] = None
    """Password chosen by the user."""
    role: Optional[str] = None
    """Free-form role label."""
    country: Optional[str] = None
    city: Optional[str] = None
    telephone: Optional[str] = None

    def field_errors(self):
        return [
            length_error(self.fullname, "fullname", 4, 50),
            email_error(self.email),
            None if self.password is None or EncryptionDec().is_valid_password(self.password) else PASSWORD_POLICY_MESSAGE,
            length_error(self.telephone, "telephone number", 3, 15),
        ]


class UserCredentials(RequestSchema):
    """
    Represents login credentials for a user.
    """

    required_fields: ClassVar[Dict[str, str]] = {
        "email": "Email is required",
        "password": "Password is required",
    }

    email: Optional[str] = None
    password: Optional[str] = None


class VerifCode(RequestSchema):
    """
    Represents a request to verify a user's email.
    """

    required_fields: ClassVar[Dict[str, str]] = {
        "email": "Email is required",
        "code": "Verification code is required",
    }

    email: Optional[str] = None
    code: Optional[str] = None


class UserEmail(RequestSchema):
    """Email-only body (resend code, forgot password)."""

    required_fields: ClassVar[Dict[str, str]] = {"email": "Email is required"}

    email: Optional[str] = None

    def field_errors(self):
        return [email_error(self.email)]


class NewPassword(RequestSchema):
    required_fields: ClassVar[Dict[str, str]] = {"password": "Password is required"}

    password: Optional[str] = None

    def field_errors(self):
        if self.password is None or EncryptionDec().is_valid_password(self.password):
            return []
        return [PASSWORD_POLICY_MESSAGE]


class UserEdit(RequestSchema):
    """Profile fields a user may change; every field is optional."""

    fullname: Optional[str] = None
    role: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    telephone: Optional[str] = None

    def field_errors(self):
        return [
            length_error(self.fullname, "fullname", 4, 50),
            length_error(self.telephone, "telephone number", 3, 15),
        ]


# -- Services ----------------------------------------------------------------


class ServiceDetails(RequestSchema):
    required_fields: ClassVar[Dict[str, str]] = {"name": "Service name is required"}

    name: Optional[str] = None
    details: Optional[str] = None

    def field_errors(self):
        return [length_error(self.name, "name", 4, 100), length_error(self.details, "details", 20, 1000)]


class ServiceEdit(ServiceDetails):
    required_fields: ClassVar[Dict[str, str]] = {}


# -- Leads & clients ---------------------------------------------------------


class ContactDetails(RequestSchema):
    """Fields shared by leads and clients."""

    allowed_sources: ClassVar[tuple] = ()

    fullname: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    company: Optional[str] = None
    lead_source: Optional[str] = Field(None, alias="leadSource")
    service: Optional[str] = None
    """Identifier of the linked service."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore", populate_by_name=True)

    @property
    def service_id(self) -> Optional[UUID]:
        return parse_id(self.service) if self.service else None

    def field_errors(self):
        return [
            length_error(self.fullname, "fullname", 4, 100),
            email_error(self.email),
            length_error(self.telephone, "telephone number", 3, 20),
            length_error(self.city, "city", 4, 100),
            length_error(self.country, "country", 4, 60),
            length_error(self.company, "company", 4, 100),
            None if self.lead_source in (None, *self.allowed_sources) else f"{self.lead_source} is not supported",
            "Service ID is invalid" if self.service and self.service_id is None else None,
        ]


class LeadDetails(ContactDetails):
    """
    A new lead. Name, email and country are mandatory; ``service`` is the
    optional service the lead is interested in.
    """

    required_fields: ClassVar[Dict[str, str]] = {
        "fullname": "Lead fullname is required",
        "email": "Lead email is required",
        "country": "Lead country is required",
    }
    allowed_sources: ClassVar[tuple] = LEAD_SOURCES

    message: Optional[str] = None

    def field_errors(self):
        return super().field_errors() + [length_error(self.message, "message", 4, 1000)]


class LeadEdit(LeadDetails):
    required_fields: ClassVar[Dict[str, str]] = {}


class ClientDetails(ContactDetails):
    required_fields: ClassVar[Dict[str, str]] = {
        "fullname": "Client fullname is required",
        "email": "Client email is required",
        "country": "Client country is required",
    }
    allowed_sources: ClassVar[tuple] = CLIENT_SOURCES

    details: Optional[str] = None

    def field_errors(self):
        return super().field_errors() + [length_error(self.details, "details", 4, 1000)]


class ClientEdit(ClientDetails):
    required_fields: ClassVar[Dict[str, str]] = {}


# -- Content -----------------------------------------------------------------


class ContentBlock(BaseModel):
    """
    One section of a blog post. A block carries no image reference from the
    client: its image is only ever set from a file uploaded for that block.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: Optional[str] = None
    details: Optional[str] = None


class BlogDetails(RequestSchema):
    required_fields: ClassVar[Dict[str, str]] = {
        "title": "Title is required",
        "intro_description": "Intro description is required",
        "content_blocks": "Content blocks is required",
    }

    title: Optional[str] = None
    intro_description: Optional[str] = Field(None, alias="introDescription")
    content_blocks: List[ContentBlock] = Field(default_factory=list, alias="contentBlocks")
    tags: List[str] = Field(default_factory=list)

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore", populate_by_name=True)

    def field_errors(self):
        errors = [
            length_error(self.title, "title", 4, 100),
            length_error(self.intro_description, "introDescription", 4, 1000),
        ]
        for index, block in enumerate(self.content_blocks, start=1):
            if is_blank(block.title):
                errors.append(f"Content block {index} title is required")
            if is_blank(block.details):
                errors.append(f"Content block {index} details is required")
            else:
                errors.append(length_error(block.details, f"content block {index} details", 20, 1000))
        return errors


class BlogEdit(BlogDetails):
    required_fields: ClassVar[Dict[str, str]] = {}


class AnnouncementDetails(RequestSchema):
    required_fields: ClassVar[Dict[str, str]] = {
        "title": "Title is required",
        "description": "Description is required",
    }

    title: Optional[str] = None
    description: Optional[str] = None

    def field_errors(self):
        return [length_error(self.title, "title", 4, 100), length_error(self.description, "description", 4, 1000)]


class FAQDetails(RequestSchema):
    required_fields: ClassVar[Dict[str, str]] = {
        "question": "Question is required",
        "answer": "Answer is required",
    }

    question: Optional[str] = None
    answer: Optional[str] = None

    def field_errors(self):
        return [length_error(self.question, "question", 4, 100), length_error(self.answer, "answer", 4, 1000)]


class FAQEdit(FAQDetails):
    required_fields: ClassVar[Dict[str, str]] = {}


# -- Bulk operations ---------------------------------------------------------


class IdList(RequestSchema):
    """Body of the ``delete/many`` and ``read`` routes."""

    required_fields: ClassVar[Dict[str, str]] = {"ids": "Please provide the ids to process"}

    ids: List[str] = Field(default_factory=list)

    def field_errors(self):
        return [f"{value} is not a valid id" for value in self.ids if parse_id(value) is None]

    def parsed(self) -> List[UUID]:
        return [parse_id(value) for value in self.ids]


class FileReference(RequestSchema):
    """Body naming one stored object by public URL, key or filename."""

    required_fields: ClassVar[Dict[str, str]] = {"file": "File is required"}

    file: Optional[str] = None
