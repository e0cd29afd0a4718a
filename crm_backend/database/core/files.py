"""
Service-layer operations of the storage routes.

A user's storage is the set of objects they uploaded through these routes,
recorded as :class:`StoredFile` rows. Every operation resolves the reference
against the caller's rows first; an object outside them is reported as not
found, whoever owns it.
"""

import logging
from typing import Iterator, List, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from crm_backend.api.errors import DependencyError, ObjectNotFoundError, ValidationError
from crm_backend.database.core.mutation import MutationProtocol, Phase
from crm_backend.database.daos.stored_file_dao import StoredFileDao
from crm_backend.database.entities.notification import NotificationType, RelatedModel, RelatedRef
from crm_backend.database.entities.stored_file import StoredFile
from crm_backend.database.entities.user import User
from crm_backend.database.helpers.transactionManagement import transactional
from crm_backend.storage.lifecycle import ObjectStorage, UploadedFile

logger = logging.getLogger(__name__)


@transactional
def fetch_owned_file(session: Session, owner_id: UUID, key: str) -> StoredFile:
    record = StoredFileDao().fetchByKey(session, key)
    if record is None or record.owner_id != owner_id:
        raise ObjectNotFoundError("File not found in user's storage")
    return record


@transactional
def fetch_owner_files(session: Session, owner_id: UUID) -> List[StoredFile]:
    return StoredFileDao().fetchByOwner(session, owner_id)


@transactional
def insert_stored_files(session: Session, records: List[StoredFile]) -> List[StoredFile]:
    dao = StoredFileDao()
    return [dao.create(session, record) for record in records]


@transactional
def save_stored_file(session: Session, record: StoredFile) -> StoredFile:
    return StoredFileDao().save(session, record)


@transactional
def delete_stored_file_rows(session: Session, records: List[StoredFile]) -> int:
    return StoredFileDao().deleteMany(session, records)


def _reference_errors(reference: str) -> List[str]:
    return [] if reference else ["File reference is required"]


def upload_files(protocol: MutationProtocol, owner: User, storage: ObjectStorage, files: List[UploadedFile]) -> List[str]:
    """Store every file in the owner's storage, or none of them."""
    errors = [message for file in files for message in file.errors()] if files else ["Please upload at least one file"]
    protocol.check(errors)

    with protocol.phase(Phase.MUTATING_PRIMARY):
        urls = storage.store_all(files)
        records = [
            StoredFile(key=storage.key_for(url), owner_id=owner.id, size=file.size) for url, file in zip(urls, files)
        ]
        try:
            records = insert_stored_files(records=records)
        except Exception:
            for url in urls:
                storage.discard(url)
            raise

    protocol.notify(
        f"{len(records)} files were added to storage",
        NotificationType.ADD,
        RelatedRef(RelatedModel.FILE, records[0].id if len(records) == 1 else None),
    )
    return urls


def replace_file(
    protocol: MutationProtocol, owner: User, storage: ObjectStorage, reference: str, file: UploadedFile
) -> str:
    """
    Swap one of the owner's objects for ``file``.

    The new object is stored and recorded before the old one is removed;
    failing to remove the old object is logged only.
    """
    protocol.check(file.errors() + _reference_errors(reference))
    with protocol.phase(Phase.AUTHORIZING):
        record = fetch_owned_file(owner_id=owner.id, key=storage.key_for(reference))

    old_key = record.key
    with protocol.phase(Phase.MUTATING_PRIMARY):
        url = storage.store(file)
        record.key = storage.key_for(url)
        record.size = file.size
        try:
            record = save_stored_file(record=record)
        except Exception:
            storage.discard(url)
            raise

    protocol.dependents(storage.discard, ref=old_key)
    protocol.notify(f"File {old_key} was replaced", NotificationType.EDIT, RelatedRef(RelatedModel.FILE, record.id))
    return url


def delete_file(protocol: MutationProtocol, owner: User, storage: ObjectStorage, reference: str) -> str:
    """
    Remove one of the owner's objects.

    Raises
    ------
    DependencyError
        The record was deleted but the bucket delete failed.
    """
    protocol.check(_reference_errors(reference))
    with protocol.phase(Phase.AUTHORIZING):
        record = fetch_owned_file(owner_id=owner.id, key=storage.key_for(reference))

    protocol.primary(delete_stored_file_rows, records=[record])
    with protocol.phase(Phase.MUTATING_DEPENDENTS):
        try:
            storage.remove(record.key)
        except ObjectNotFoundError:
            logger.warning(f"{protocol.name}: {record.key} was already missing from the bucket")
        except Exception as e:
            logger.error(f"{protocol.name}: record of {record.key} deleted but the object was not: {e}")
            raise DependencyError(f"File was removed from storage but could not be deleted: {e}")
    protocol.notify(f"File {record.key} was deleted", NotificationType.DELETE, RelatedRef(RelatedModel.FILE, record.id))
    return record.key


def usage_report(owner: User, storage: ObjectStorage) -> dict:
    keys = {record.key for record in fetch_owner_files(owner_id=owner.id)}
    return storage.usage_report(obj for obj in storage.listing() if obj["key"] in keys)


def download(owner: User, storage: ObjectStorage, reference: str) -> Tuple[str, Iterator[bytes]]:
    if not reference:
        raise ValidationError("File reference is required")
    record = fetch_owned_file(owner_id=owner.id, key=storage.key_for(reference))
    return storage.fetch(record.key)
