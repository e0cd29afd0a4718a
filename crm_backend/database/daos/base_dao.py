"""
Base DAO

Purpose
-------
Generic persistence operations shared by every entity DAO:
- Insert, merge-save and delete of single rows
- Lookup by id and by a list of ids
- Listing (newest first) and counting
- In-place push/pull on reference-array columns

Design
------
- Every method takes the active SQLAlchemy `Session` first; sessions come
  from `@transactional` in the service layer.
- Entities arrive detached from earlier transactions. ``save`` and ``delete``
  merge them into the current session, so the ``version`` column read
  earlier is compared against the stored one (``StaleDataError`` on
  mismatch).
- Each method logs and re-raises; the service layer decides error policy.
"""

import logging
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class BaseDao:
    """
    Data Access Object base class. Subclasses set ``entity`` to the mapped
    class they manage.
    """

    entity = None

    def create(self, session: Session, instance):
        """Stage a new row and flush it so database defaults are populated."""
        try:
            session.add(instance)
            session.flush()
            return instance
        except Exception as e:
            logger.error(f"Error in {type(self).__name__}.create. Error Message: {e}")
            raise e

    def save(self, session: Session, instance):
        """Merge a detached, modified instance and flush the update."""
        try:
            merged = session.merge(instance)
            session.flush()
            return merged
        except Exception as e:
            logger.error(f"Error in {type(self).__name__}.save. Error Message: {e}")
            raise e

    def delete(self, session: Session, instance) -> None:
        try:
            session.delete(session.merge(instance))
            session.flush()
        except Exception as e:
            logger.error(f"Error in {type(self).__name__}.delete. Error Message: {e}")
            raise e

    def deleteMany(self, session: Session, instances: Iterable) -> int:
        try:
            count = 0
            for instance in instances:
                session.delete(session.merge(instance))
                count += 1
            session.flush()
            return count
        except Exception as e:
            logger.error(f"Error in {type(self).__name__}.deleteMany. Error Message: {e}")
            raise e

    def fetchById(self, session: Session, entity_id: UUID) -> Optional[object]:
        try:
            return session.get(self.entity, entity_id)
        except Exception as e:
            logger.error(f"Error in {type(self).__name__}.fetchById. Error Message: {e}")
            raise e

    def fetchByIds(self, session: Session, entity_ids: Iterable[UUID]) -> List:
        try:
            ids = list(entity_ids)
            if not ids:
                return []
            return session.query(self.entity).filter(self.entity.id.in_(ids)).all()
        except Exception as e:
            logger.error(f"Error in {type(self).__name__}.fetchByIds. Error Message: {e}")
            raise e

    def fetchAll(self, session: Session, *criteria) -> List:
        """All rows matching ``criteria``, newest first."""
        try:
            return (
                session.query(self.entity)
                .filter(*criteria)
                .order_by(self.entity.created_at.desc())
                .all()
            )
        except Exception as e:
            logger.error(f"Error in {type(self).__name__}.fetchAll. Error Message: {e}")
            raise e

    def count(self, session: Session, *criteria) -> int:
        try:
            return session.query(self.entity).filter(*criteria).count()
        except Exception as e:
            logger.error(f"Error in {type(self).__name__}.count. Error Message: {e}")
            raise e

    def updateReferences(self, session: Session, entity_id: UUID, push: dict, pull: dict):
        """
        Push and pull identifiers on the reference-array columns of one row.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        entity_id : UUID
            Row holding the arrays.
        push, pull : dict[str, list]
            Column name -> identifiers to add / remove. Pushing an id that is
            already present and pulling an absent id are no-ops.

        Returns
        -------
        object | None
            The updated row, or None when the row does not exist.
        """
        try:
            row = session.get(self.entity, entity_id)
            if row is None:
                return None
            for field, ids in pull.items():
                references = getattr(row, field)
                for ref in ids:
                    if str(ref) in references:
                        references.remove(str(ref))
            for field, ids in push.items():
                references = getattr(row, field)
                for ref in ids:
                    if str(ref) not in references:
                        references.append(str(ref))
            session.flush()
            return row
        except Exception as e:
            logger.error(f"Error in {type(self).__name__}.updateReferences. Error Message: {e}")
            raise e
