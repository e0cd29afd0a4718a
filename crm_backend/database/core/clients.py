"""
Service-layer operations for clients.

Clients belong to the user that created (or converted) them and only that
user may read, edit or delete them. A client optionally references a
service (mirrored in ``Service.client_ids``) and carries a list of stored
files.

Converting a lead inserts the client and deletes the lead in one
transaction, then swaps the lead for the client in the service's arrays.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from crm_backend.api.errors import AuthorizationError, ConflictError, DependencyError, NotFoundError
from crm_backend.api.models import CLIENT_SOURCES, ClientDetails, ClientEdit, IdList
from crm_backend.database.core.leads import fetch_lead
from crm_backend.database.core.mutation import MutationProtocol, Phase
from crm_backend.database.core.relationships import ReferenceUpdate, move_reference, unlink_references
from crm_backend.database.core.services import fetch_service
from crm_backend.database.daos.client_dao import ClientDao
from crm_backend.database.daos.lead_dao import LeadDao
from crm_backend.database.daos.service_dao import ServiceDao
from crm_backend.database.entities.client import Client
from crm_backend.database.entities.lead import Lead
from crm_backend.database.entities.notification import NotificationType, RelatedModel, RelatedRef
from crm_backend.database.entities.user import User
from crm_backend.database.helpers.transactionManagement import transactional
from crm_backend.storage.lifecycle import ObjectStorage, UploadedFile

logger = logging.getLogger(__name__)


@transactional
def fetch_client(session: Session, client_id: UUID) -> Client:
    client = ClientDao().fetchById(session, client_id)
    if client is None:
        raise NotFoundError("Client not found")
    return client


@transactional
def fetch_owned_client(session: Session, client_id: UUID, owner: User) -> Client:
    client = fetch_client(client_id=client_id)
    if client.owner_id != owner.id:
        raise AuthorizationError("You are not authorized to access this client")
    return client


@transactional
def fetch_clients(session: Session, owner: User) -> List[Client]:
    return ClientDao().fetchByOwner(session, owner.id)


@transactional
def fetch_clients_by_ids(session: Session, client_ids) -> List[Client]:
    return ClientDao().fetchByIds(session, client_ids)


@transactional
def check_email(session: Session, email: str, exclude=None) -> None:
    if ClientDao().fetchByEmail(session, email, exclude=exclude) is not None:
        raise ConflictError("Client with this email already exists")


@transactional
def insert_client(session: Session, client: Client) -> Client:
    return ClientDao().create(session, client)


@transactional
def save_client(session: Session, client: Client) -> Client:
    return ClientDao().save(session, client)


@transactional
def delete_client_rows(session: Session, clients: List[Client]) -> List[Client]:
    ClientDao().deleteMany(session, clients)
    return clients


@transactional
def replace_lead_with_client(session: Session, lead: Lead, client: Client) -> Client:
    """Insert ``client`` and delete ``lead`` in the same transaction."""
    ClientDao().create(session, client)
    LeadDao().delete(session, lead)
    return client


def create_client(protocol: MutationProtocol, owner: User, data: ClientDetails) -> dict:
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.VALIDATING):
        check_email(email=data.email)
    with protocol.phase(Phase.AUTHORIZING):
        if data.service_id is not None:
            fetch_service(service_id=data.service_id)

    client = Client(
        fullname=data.fullname,
        email=data.email,
        country=data.country,
        owner_id=owner.id,
        details=data.details,
        telephone=data.telephone,
        city=data.city,
        company=data.company,
        lead_source=data.lead_source,
        service_id=data.service_id,
    )
    client = protocol.sync(
        primary=lambda: insert_client(client=client),
        dependents=lambda saved: move_reference(ServiceDao, "client_ids", saved.id, None, saved.service_id),
    )
    protocol.notify(
        f"Client {client.fullname} was created successfully",
        NotificationType.CREATE,
        RelatedRef(RelatedModel.CLIENT, client.id),
    )
    return client.to_dict()


def edit_client(protocol: MutationProtocol, owner: User, client_id: UUID, data: ClientEdit) -> dict:
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.VALIDATING):
        if data.email:
            check_email(email=data.email, exclude=client_id)
    with protocol.phase(Phase.AUTHORIZING):
        client = fetch_owned_client(client_id=client_id, owner=owner)
        if data.service_id is not None:
            fetch_service(service_id=data.service_id)

    previous_service = client.service_id
    for field, value in data.changes().items():
        if field == "service":
            continue
        if value:
            setattr(client, field, value.strip().lower() if field == "email" else value)
    if data.service_id is not None:
        client.service_id = data.service_id

    client = protocol.sync(
        primary=lambda: save_client(client=client),
        dependents=lambda saved: move_reference(ServiceDao, "client_ids", saved.id, previous_service, saved.service_id),
    )
    protocol.notify(
        f"Client {client.fullname} was edited successfully",
        NotificationType.EDIT,
        RelatedRef(RelatedModel.CLIENT, client.id),
    )
    return client.to_dict()


def convert_lead(protocol: MutationProtocol, owner: User, lead_id: UUID) -> dict:
    """
    Turn a lead into a client owned by ``owner``.

    The lead's service, if any, ends up with the client in ``client_ids``
    and without the lead in ``lead_ids``.
    """
    with protocol.phase(Phase.AUTHORIZING):
        lead = fetch_lead(lead_id=lead_id)
        check_email(email=lead.email)

    client = Client(
        fullname=lead.fullname,
        email=lead.email,
        country=lead.country,
        owner_id=owner.id,
        details=lead.message,
        telephone=lead.telephone,
        city=lead.city,
        company=lead.company,
        lead_source=lead.lead_source if lead.lead_source in CLIENT_SOURCES else "Other",
        service_id=lead.service_id,
    )

    def swap_references(saved: Client) -> List[ReferenceUpdate]:
        if saved.service_id is None:
            return []
        return [
            ReferenceUpdate(
                ServiceDao,
                saved.service_id,
                push={"client_ids": [saved.id]},
                pull={"lead_ids": [lead.id]},
            )
        ]

    client = protocol.sync(primary=lambda: replace_lead_with_client(lead=lead, client=client), dependents=swap_references)
    protocol.notify(
        f"Lead {lead.fullname} was converted to a client",
        NotificationType.CONVERT,
        RelatedRef(RelatedModel.CLIENT, client.id),
    )
    return client.to_dict()


def add_files(
    protocol: MutationProtocol,
    owner: User,
    client_id: UUID,
    files: List[UploadedFile],
    storage: ObjectStorage,
) -> dict:
    """Store ``files`` and append their URLs to the client."""
    errors = [message for file in files for message in file.errors()] if files else ["Please upload at least one file"]
    protocol.check(errors)
    with protocol.phase(Phase.AUTHORIZING):
        client = fetch_owned_client(client_id=client_id, owner=owner)

    with protocol.phase(Phase.MUTATING_PRIMARY):
        urls = storage.store_all(files)
        client.files.extend(urls)
        try:
            client = save_client(client=client)
        except Exception:
            for url in urls:
                storage.discard(url)
            raise
    protocol.notify(
        f"{len(urls)} files were added to client {client.fullname}",
        NotificationType.ADD,
        RelatedRef(RelatedModel.CLIENT, client.id),
    )
    return client.to_dict()


def remove_file(protocol: MutationProtocol, owner: User, client_id: UUID, file: str, storage: ObjectStorage) -> dict:
    """
    Drop ``file`` from the client, then delete it from the bucket.

    Raises
    ------
    DependencyError
        The client was updated but the object could not be deleted.
    """
    protocol.check([] if file else ["File is required"])
    with protocol.phase(Phase.AUTHORIZING):
        client = fetch_owned_client(client_id=client_id, owner=owner)
        if file not in client.files:
            raise NotFoundError("File not found in client")

    client.files.remove(file)
    client = protocol.primary(save_client, client=client)
    with protocol.phase(Phase.MUTATING_DEPENDENTS):
        try:
            storage.remove(file)
        except Exception as e:
            logger.error(f"{protocol.name}: {file} removed from client {client.id} but not from the bucket: {e}")
            raise DependencyError(f"File was removed from the client but could not be deleted: {e}")
    protocol.notify(
        f"A file was removed from client {client.fullname}",
        NotificationType.REMOVE,
        RelatedRef(RelatedModel.CLIENT, client.id),
    )
    return client.to_dict()


def delete_client(protocol: MutationProtocol, owner: User, client_id: UUID, storage: ObjectStorage) -> None:
    with protocol.phase(Phase.AUTHORIZING):
        client = fetch_owned_client(client_id=client_id, owner=owner)

    protocol.sync(
        primary=lambda: delete_client_rows(clients=[client]),
        dependents=lambda deleted: unlink_references(ServiceDao, "client_ids", [(client.service_id, client.id)]),
    )
    for url in client.files:
        protocol.dependents(storage.discard, ref=url)
    protocol.notify(
        f"Client {client.fullname} has been deleted successfully",
        NotificationType.DELETE,
        RelatedRef(RelatedModel.CLIENT, client.id),
    )


def delete_clients(protocol: MutationProtocol, owner: User, data: IdList, storage: ObjectStorage) -> int:
    """Delete every client in ``data.ids``; all must exist and belong to ``owner``."""
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.AUTHORIZING):
        wanted = set(data.parsed())
        clients = fetch_clients_by_ids(client_ids=wanted)
        if len(clients) != len(wanted) or any(client.owner_id != owner.id for client in clients):
            raise AuthorizationError("You do not have permission to delete some or all of the selected clients")

    deleted = protocol.sync(
        primary=lambda: delete_client_rows(clients=clients),
        dependents=lambda rows: unlink_references(ServiceDao, "client_ids", [(row.service_id, row.id) for row in rows]),
    )
    for client in deleted:
        for url in client.files:
            protocol.dependents(storage.discard, ref=url)
    protocol.notify(
        f"{len(deleted)} clients have been deleted successfully",
        NotificationType.DELETE,
        RelatedRef(RelatedModel.CLIENT),
    )
    return len(deleted)
