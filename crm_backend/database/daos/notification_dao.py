"""
Notification DAO

Reads and writes on the append-only `notification` table, including the
bulk delete used by the retention sweep.
"""

import logging
from datetime import datetime
from typing import Iterable, List
from uuid import UUID

from sqlalchemy.orm import Session

from crm_backend.database.daos.base_dao import BaseDao
from crm_backend.database.entities.notification import Notification

logger = logging.getLogger(__name__)


class NotificationDao(BaseDao):
    entity = Notification

    def fetchByCreator(self, session: Session, user_id: UUID) -> List[Notification]:
        return self.fetchAll(session, Notification.created_by == user_id)

    def countUnread(self, session: Session, user_id: UUID) -> int:
        return self.count(session, Notification.created_by == user_id, Notification.is_read.is_(False))

    def deleteOlderThan(self, session: Session, cutoff: datetime) -> int:
        """
        Delete every notification created before ``cutoff``.

        Returns
        -------
        int
            Number of deleted rows.
        """
        try:
            return (
                session.query(Notification)
                .filter(Notification.created_at < cutoff)
                .delete(synchronize_session=False)
            )
        except Exception as e:
            logger.error(f"Error in NotificationDao.deleteOlderThan. Error Message: {e}")
            raise e

    def markRead(self, session: Session, notification_ids: Iterable[UUID]) -> int:
        try:
            ids = list(notification_ids)
            if not ids:
                return 0
            return (
                session.query(Notification)
                .filter(Notification.id.in_(ids))
                .update({Notification.is_read: True}, synchronize_session=False)
            )
        except Exception as e:
            logger.error(f"Error in NotificationDao.markRead. Error Message: {e}")
            raise e
