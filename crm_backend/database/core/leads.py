"""
Service-layer operations for leads.

Every write that touches ``Lead.service_id`` goes through the relationship
sync, so the lead row and ``Service.lead_ids`` are always updated by the
same routine: lead first, service second.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from crm_backend.api.errors import AuthorizationError, ConflictError, NotFoundError
from crm_backend.api.models import IdList, LeadDetails, LeadEdit
from crm_backend.database.core.mutation import MutationProtocol, Phase
from crm_backend.database.core.relationships import move_reference, unlink_references
from crm_backend.database.core.services import fetch_service
from crm_backend.database.daos.lead_dao import LeadDao
from crm_backend.database.daos.service_dao import ServiceDao
from crm_backend.database.entities.lead import Lead
from crm_backend.database.entities.notification import NotificationType, RelatedModel, RelatedRef
from crm_backend.database.helpers.transactionManagement import transactional

logger = logging.getLogger(__name__)


@transactional
def fetch_lead(session: Session, lead_id: UUID) -> Lead:
    lead = LeadDao().fetchById(session, lead_id)
    if lead is None:
        raise NotFoundError("Lead not found")
    return lead


@transactional
def fetch_leads(session: Session) -> List[Lead]:
    return LeadDao().fetchAll(session)


@transactional
def fetch_leads_by_ids(session: Session, lead_ids) -> List[Lead]:
    return LeadDao().fetchByIds(session, lead_ids)


@transactional
def insert_lead(session: Session, lead: Lead) -> Lead:
    return LeadDao().create(session, lead)


@transactional
def save_lead(session: Session, lead: Lead) -> Lead:
    return LeadDao().save(session, lead)


@transactional
def delete_lead_rows(session: Session, leads: List[Lead]) -> List[Lead]:
    LeadDao().deleteMany(session, leads)
    return leads


@transactional
def check_duplicate(session: Session, fullname: str, email: str, exclude=None) -> None:
    duplicate = LeadDao().fetchDuplicate(session, fullname or "", email or "", exclude=exclude)
    if duplicate is None:
        return
    if email and duplicate.email == email.strip().lower():
        raise ConflictError("Lead with this email already exists in your account")
    raise ConflictError("Lead with this fullname already exists in your account")


def create_lead(protocol: MutationProtocol, data: LeadDetails) -> dict:
    """
    Create a lead and, when ``data.service`` is set, link it to the service.

    Raises
    ------
    ValidationError
        Missing name, email or country, or a malformed service id.
    ConflictError
        A lead with the same fullname or email exists.
    NotFoundError
        The service does not exist.
    DependencyError
        The lead was created but the service could not be updated.
    """
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.VALIDATING):
        check_duplicate(fullname=data.fullname, email=data.email)
    with protocol.phase(Phase.AUTHORIZING):
        if data.service_id is not None:
            fetch_service(service_id=data.service_id)

    lead = Lead(
        fullname=data.fullname,
        email=data.email,
        country=data.country,
        message=data.message,
        telephone=data.telephone,
        city=data.city,
        company=data.company,
        lead_source=data.lead_source,
        service_id=data.service_id,
    )
    lead = protocol.sync(
        primary=lambda: insert_lead(lead=lead),
        dependents=lambda saved: move_reference(ServiceDao, "lead_ids", saved.id, None, saved.service_id),
    )
    protocol.notify(
        f"A new lead {lead.fullname} has been created successfully",
        NotificationType.CREATE,
        RelatedRef(RelatedModel.LEAD, lead.id),
    )
    return lead.to_dict()


def edit_lead(protocol: MutationProtocol, lead_id: UUID, data: LeadEdit) -> dict:
    """Update a lead; a changed ``service`` moves the lead between services."""
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.VALIDATING):
        if data.fullname or data.email:
            check_duplicate(fullname=data.fullname, email=data.email, exclude=lead_id)
    with protocol.phase(Phase.AUTHORIZING):
        lead = fetch_lead(lead_id=lead_id)
        if data.service_id is not None:
            fetch_service(service_id=data.service_id)

    previous_service = lead.service_id
    for field, value in data.changes().items():
        if field == "service":
            continue
        if value:
            setattr(lead, field, value.strip().lower() if field == "email" else value)
    if data.service_id is not None:
        lead.service_id = data.service_id

    lead = protocol.sync(
        primary=lambda: save_lead(lead=lead),
        dependents=lambda saved: move_reference(ServiceDao, "lead_ids", saved.id, previous_service, saved.service_id),
    )
    protocol.notify(
        f"Lead {lead.fullname} has been edited successfully",
        NotificationType.EDIT,
        RelatedRef(RelatedModel.LEAD, lead.id),
    )
    return lead.to_dict()


def delete_lead(protocol: MutationProtocol, lead_id: UUID) -> None:
    with protocol.phase(Phase.AUTHORIZING):
        lead = fetch_lead(lead_id=lead_id)

    protocol.sync(
        primary=lambda: delete_lead_rows(leads=[lead]),
        dependents=lambda deleted: unlink_references(ServiceDao, "lead_ids", [(lead.service_id, lead.id)]),
    )
    protocol.notify(
        f"Lead {lead.fullname} has been deleted successfully",
        NotificationType.DELETE,
        RelatedRef(RelatedModel.LEAD, lead.id),
    )


def delete_leads(protocol: MutationProtocol, data: IdList) -> int:
    """Delete every lead in ``data.ids`` or, if any is missing, none of them."""
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.AUTHORIZING):
        wanted = set(data.parsed())
        leads = fetch_leads_by_ids(lead_ids=wanted)
        if len(leads) != len(wanted):
            raise AuthorizationError("Some leads not found or not authorized")

    deleted = protocol.sync(
        primary=lambda: delete_lead_rows(leads=leads),
        dependents=lambda rows: unlink_references(ServiceDao, "lead_ids", [(row.service_id, row.id) for row in rows]),
    )
    protocol.notify(
        f"{len(deleted)} leads have been deleted successfully",
        NotificationType.DELETE,
        RelatedRef(RelatedModel.LEAD),
    )
    return len(deleted)
