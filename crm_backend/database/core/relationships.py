"""
Relationship sync
=================

Bidirectional references (``Service.lead_ids`` <-> ``Lead.service_id``,
``Service.client_ids`` <-> ``Client.service_id``) are written in two steps:

1. the primary write, which sets the single-reference side;
2. one :class:`ReferenceUpdate` per parent row, pushing or pulling the id on
   the array side.

Every step runs in its own transaction. Nothing is rolled back when a step
fails: the primary write stays committed and the failure is reported through
:class:`SyncResult`. A crash between the steps leaves the two sides
disagreeing; the mismatch is visible by comparing them and is never repaired
automatically.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Type, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from crm_backend.database.daos.base_dao import BaseDao
from crm_backend.database.helpers.transactionManagement import transactional

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SyncResult:
    """
    Outcome of a relationship sync.

    Attributes
    ----------
    primary_ok : bool
        The primary write committed.
    dependent_ok : bool
        Every reference update committed. False when the primary failed,
        since no update was attempted.
    errors : list[str]
        One message per failed step.
    primary_error : Exception | None
        The exception raised by the primary write, kept for re-raising.
    """

    primary_ok: bool = True
    dependent_ok: bool = True
    errors: List[str] = field(default_factory=list)
    primary_error: Optional[Exception] = None


@dataclass
class ReferenceUpdate:
    """
    Push/pull of identifiers on the reference arrays of one parent row.

    ``dao`` is the DAO class of the parent entity, e.g. ``ServiceDao``.
    """

    dao: Type[BaseDao]
    parent_id: UUID
    push: Dict[str, List] = field(default_factory=dict)
    pull: Dict[str, List] = field(default_factory=dict)

    def describe(self) -> str:
        entity = self.dao.entity.__name__ if self.dao.entity is not None else self.dao.__name__
        return f"{entity} {self.parent_id}"


@transactional
def _apply_update(session: Session, update: ReferenceUpdate) -> bool:
    return update.dao().updateReferences(session, update.parent_id, update.push, update.pull) is not None


def apply_reference_updates(updates: Iterable[ReferenceUpdate]) -> SyncResult:
    """
    Apply every update, each in its own transaction.

    All updates are attempted even after one fails; a parent row that no
    longer exists counts as a failure.
    """
    result = SyncResult()
    for update in updates:
        try:
            if not _apply_update(update=update):
                result.dependent_ok = False
                result.errors.append(f"{update.describe()} does not exist")
                logger.warning(f"Reference update skipped, {update.describe()} does not exist")
        except Exception as e:
            result.dependent_ok = False
            result.errors.append(f"Failed to update {update.describe()}")
            logger.error(f"Reference update on {update.describe()} failed: {e}")
    return result


def sync_relationship(
    primary: Callable[[], T],
    dependents: Callable[[T], Iterable[ReferenceUpdate]],
) -> Tuple[Optional[T], SyncResult]:
    """
    Run the primary write, then the reference updates derived from its result.

    Parameters
    ----------
    primary : callable
        Performs and commits the primary write, returning the written row.
    dependents : callable
        Maps the primary's result to the reference updates to apply.

    Returns
    -------
    tuple
        ``(value, SyncResult)``. ``value`` is None when the primary failed.
    """
    try:
        value = primary()
    except Exception as e:
        logger.warning(f"Primary write failed, no reference update attempted: {e}")
        return None, SyncResult(primary_ok=False, dependent_ok=False, errors=[str(e)], primary_error=e)
    return value, apply_reference_updates(dependents(value))


def move_reference(
    dao: Type[BaseDao],
    field: str,
    child_id: UUID,
    old_parent_id: Optional[UUID],
    new_parent_id: Optional[UUID],
) -> List[ReferenceUpdate]:
    """
    Updates moving ``child_id`` from one parent's array to another's.

    Either parent may be None (link, unlink). Nothing moves when both are
    the same parent.
    """
    if old_parent_id == new_parent_id:
        return []
    updates = []
    if old_parent_id is not None:
        updates.append(ReferenceUpdate(dao, old_parent_id, pull={field: [child_id]}))
    if new_parent_id is not None:
        updates.append(ReferenceUpdate(dao, new_parent_id, push={field: [child_id]}))
    return updates


def unlink_references(dao: Type[BaseDao], field: str, links: Iterable[Tuple[Optional[UUID], UUID]]) -> List[ReferenceUpdate]:
    """
    One pull update per parent for a batch of ``(parent_id, child_id)`` links;
    children without a parent are skipped.
    """
    grouped: Dict[UUID, List[UUID]] = {}
    for parent_id, child_id in links:
        if parent_id is not None:
            grouped.setdefault(parent_id, []).append(child_id)
    return [ReferenceUpdate(dao, parent_id, pull={field: children}) for parent_id, children in grouped.items()]
