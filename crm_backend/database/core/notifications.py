"""
Notification sink and notification feed operations.

`NotificationSink.append` is the only writer of the notification table. It
applies the :class:`RetentionPolicy` inside the same transaction as the
insert, so a sweep and the row that triggered it commit together.

The feed functions below back the ``/api/notifications`` routes: listing,
marking as read and deleting. Notifications are owned by the user that
created them (``created_by``).
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from crm_backend.api.errors import AuthorizationError, NotFoundError
from crm_backend.database.core.retention import RetentionPolicy
from crm_backend.database.daos.notification_dao import NotificationDao
from crm_backend.database.entities.notification import Notification, NotificationType, RelatedRef
from crm_backend.database.helpers.transactionManagement import transactional

logger = logging.getLogger(__name__)


class NotificationSink:
    """
    Append-only writer of notifications.

    Parameters
    ----------
    policy : RetentionPolicy | None
        Sweep policy; read from the settings when omitted.
    dao : NotificationDao | None
        Injected for tests.
    """

    def __init__(self, policy: Optional[RetentionPolicy] = None, dao: Optional[NotificationDao] = None):
        self.policy = policy or RetentionPolicy.from_settings()
        self.dao = dao or NotificationDao()

    @transactional
    def append(
        self,
        session: Session,
        details: str,
        type: NotificationType,
        related: RelatedRef,
        created_by: UUID,
    ) -> UUID:
        """
        Insert one notification, sweeping old rows first when the table is full.

        Returns
        -------
        UUID
            Identifier of the new notification.
        """
        count = self.dao.count(session)
        if self.policy.should_sweep(count):
            cutoff = self.policy.cutoff()
            removed = self.dao.deleteOlderThan(session, cutoff)
            logger.info(f"Notification retention sweep at {count} rows removed {removed} rows older than {cutoff.isoformat()}")
        notification = Notification(details=details, type=type, related=related, created_by=created_by)
        self.dao.create(session, notification)
        return notification.id


@transactional
def fetch_all_notifications(session: Session) -> List[Notification]:
    return NotificationDao().fetchAll(session)


@transactional
def fetch_user_notifications(session: Session, user_id: UUID) -> dict:
    dao = NotificationDao()
    return {
        "notifications": dao.fetchByCreator(session, user_id),
        "unread": dao.countUnread(session, user_id),
    }


@transactional
def fetch_notification(session: Session, notification_id: UUID, user_id: UUID) -> Notification:
    notification = NotificationDao().fetchById(session, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    if notification.created_by != user_id:
        raise AuthorizationError("You do not have permission to view this notification")
    return notification


@transactional
def fetch_owned_notifications(session: Session, notification_ids: List[UUID], user_id: UUID) -> List[Notification]:
    """
    Load every notification in ``notification_ids``; all of them must exist
    and belong to ``user_id`` or nothing is returned.
    """
    wanted = set(notification_ids)
    found = NotificationDao().fetchByIds(session, wanted)
    if len(found) != len(wanted) or any(n.created_by != user_id for n in found):
        raise AuthorizationError("You do not have permission to modify some or all of the selected notifications")
    return found


@transactional
def mark_notifications_read(session: Session, notifications: List[Notification]) -> int:
    return NotificationDao().markRead(session, [n.id for n in notifications])


@transactional
def delete_notifications(session: Session, notifications: List[Notification]) -> int:
    return NotificationDao().deleteMany(session, notifications)
