"""
Service-layer operations for services.

A service is the array side of the Service <-> Lead and Service <-> Client
links. It is never deleted while either array is non-empty: the dependents
have to be deleted (or moved) first.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from crm_backend.api.errors import AuthorizationError, ConflictError, NotFoundError
from crm_backend.api.models import IdList, ServiceDetails, ServiceEdit
from crm_backend.database.core.mutation import MutationProtocol, Phase
from crm_backend.database.daos.client_dao import ClientDao
from crm_backend.database.daos.lead_dao import LeadDao
from crm_backend.database.daos.service_dao import ServiceDao
from crm_backend.database.entities.notification import NotificationType, RelatedModel, RelatedRef
from crm_backend.database.entities.service import Service
from crm_backend.database.helpers.transactionManagement import transactional

logger = logging.getLogger(__name__)


@transactional
def fetch_service(session: Session, service_id: UUID) -> Service:
    service = ServiceDao().fetchById(session, service_id)
    if service is None:
        raise NotFoundError("Service does not exist")
    return service


@transactional
def fetch_services(session: Session) -> List[Service]:
    return ServiceDao().fetchAll(session)


@transactional
def fetch_services_by_ids(session: Session, service_ids) -> List[Service]:
    return ServiceDao().fetchByIds(session, service_ids)


@transactional
def fetch_service_details(session: Session, service_id: UUID) -> dict:
    """The service with its leads and clients resolved."""
    service = fetch_service(service_id=service_id)
    details = service.to_dict()
    details["leads"] = [lead.to_dict() for lead in LeadDao().fetchByIds(session, [UUID(i) for i in service.lead_ids])]
    details["clients"] = [client.to_dict() for client in ClientDao().fetchByIds(session, [UUID(i) for i in service.client_ids])]
    return details


@transactional
def fetch_service_by_name(session: Session, name: str):
    return ServiceDao().fetchByName(session, name)


@transactional
def insert_service(session: Session, service: Service) -> Service:
    return ServiceDao().create(session, service)


@transactional
def save_service(session: Session, service: Service) -> Service:
    return ServiceDao().save(session, service)


@transactional
def delete_service_rows(session: Session, services: List[Service]) -> int:
    return ServiceDao().deleteMany(session, services)


def guard_dependents(service: Service) -> None:
    """Refuse to delete a service that still has leads or clients."""
    dependents = service.dependents()
    if "leads" in dependents:
        raise AuthorizationError("Cannot delete service with associated leads, you have to delete the leads first")
    if "clients" in dependents:
        raise AuthorizationError("Cannot delete service with associated clients, you have to delete the clients first")


def create_service(protocol: MutationProtocol, data: ServiceDetails) -> dict:
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.VALIDATING):
        if fetch_service_by_name(name=data.name):
            raise ConflictError(f"Service with name: {data.name} already exists")

    service = protocol.primary(insert_service, service=Service(name=data.name, details=data.details))
    protocol.notify(
        f"Service {service.name} was created successfully",
        NotificationType.CREATE,
        RelatedRef(RelatedModel.SERVICE, service.id),
    )
    return service.to_dict()


def edit_service(protocol: MutationProtocol, service_id: UUID, data: ServiceEdit) -> dict:
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.AUTHORIZING):
        service = fetch_service(service_id=service_id)
        if data.name and data.name != service.name:
            other = fetch_service_by_name(name=data.name)
            if other is not None and other.id != service.id:
                raise ConflictError(f"Service with name: {data.name} already exists")

    for field, value in data.changes().items():
        if value:
            setattr(service, field, value)
    service = protocol.primary(save_service, service=service)
    protocol.notify(
        f"Service {service.name} was updated successfully",
        NotificationType.EDIT,
        RelatedRef(RelatedModel.SERVICE, service.id),
    )
    return service.to_dict()


def delete_service(protocol: MutationProtocol, service_id: UUID) -> None:
    with protocol.phase(Phase.AUTHORIZING):
        service = fetch_service(service_id=service_id)
        guard_dependents(service)

    protocol.primary(delete_service_rows, services=[service])
    protocol.notify(
        f"Service {service.name} was deleted successfully",
        NotificationType.DELETE,
        RelatedRef(RelatedModel.SERVICE, service.id),
    )


def delete_services(protocol: MutationProtocol, data: IdList) -> int:
    """
    Delete every service in ``data.ids`` or none of them.

    Every id must exist and no service may have dependents.
    """
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.AUTHORIZING):
        wanted = set(data.parsed())
        services = fetch_services_by_ids(service_ids=wanted)
        if len(services) != len(wanted):
            raise AuthorizationError("You do not have permission to delete some or all of the selected services")
        for service in services:
            guard_dependents(service)

    deleted = protocol.primary(delete_service_rows, services=services)
    protocol.notify(
        f"{deleted} services were deleted successfully",
        NotificationType.DELETE,
        RelatedRef(RelatedModel.SERVICE),
    )
    return deleted
