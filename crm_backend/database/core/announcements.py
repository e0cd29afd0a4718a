"""
Service-layer operations for announcements.

Announcements are write-once: they can be posted and deleted, never edited.
Only the user that posted one may delete it.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from crm_backend.api.errors import AuthorizationError, NotFoundError
from crm_backend.api.models import AnnouncementDetails, IdList
from crm_backend.database.core.mutation import MutationProtocol, Phase
from crm_backend.database.daos.content_dao import AnnouncementDao
from crm_backend.database.entities.announcement import Announcement
from crm_backend.database.entities.notification import NotificationType, RelatedModel, RelatedRef
from crm_backend.database.entities.user import User
from crm_backend.database.helpers.transactionManagement import transactional

logger = logging.getLogger(__name__)


@transactional
def fetch_announcement(session: Session, announcement_id: UUID) -> Announcement:
    announcement = AnnouncementDao().fetchById(session, announcement_id)
    if announcement is None:
        raise NotFoundError("Announcement not found")
    return announcement


@transactional
def fetch_announcements(session: Session) -> List[Announcement]:
    return AnnouncementDao().fetchAll(session)


@transactional
def fetch_announcements_by_ids(session: Session, announcement_ids) -> List[Announcement]:
    return AnnouncementDao().fetchByIds(session, announcement_ids)


@transactional
def insert_announcement(session: Session, announcement: Announcement) -> Announcement:
    return AnnouncementDao().create(session, announcement)


@transactional
def delete_announcement_rows(session: Session, announcements: List[Announcement]) -> int:
    return AnnouncementDao().deleteMany(session, announcements)


def create_announcement(protocol: MutationProtocol, author: User, data: AnnouncementDetails) -> dict:
    protocol.check(data.collect_errors())
    announcement = Announcement(title=data.title, description=data.description, uploaded_by=author.id)
    announcement = protocol.primary(insert_announcement, announcement=announcement)
    protocol.notify(
        f"Announcement {announcement.title} was posted",
        NotificationType.CREATE,
        RelatedRef(RelatedModel.ANNOUNCEMENT, announcement.id),
    )
    return announcement.to_dict()


def delete_announcement(protocol: MutationProtocol, author: User, announcement_id: UUID) -> None:
    with protocol.phase(Phase.AUTHORIZING):
        announcement = fetch_announcement(announcement_id=announcement_id)
        if announcement.uploaded_by != author.id:
            raise AuthorizationError("You are not authorized to delete this announcement")

    protocol.primary(delete_announcement_rows, announcements=[announcement])
    protocol.notify(
        f"Announcement {announcement.title} was deleted",
        NotificationType.DELETE,
        RelatedRef(RelatedModel.ANNOUNCEMENT, announcement.id),
    )


def delete_announcements(protocol: MutationProtocol, author: User, data: IdList) -> int:
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.AUTHORIZING):
        wanted = set(data.parsed())
        announcements = fetch_announcements_by_ids(announcement_ids=wanted)
        if len(announcements) != len(wanted) or any(a.uploaded_by != author.id for a in announcements):
            raise AuthorizationError("You do not have permission to delete some or all of the selected announcements")

    deleted = protocol.primary(delete_announcement_rows, announcements=announcements)
    protocol.notify(
        f"{deleted} announcements were deleted",
        NotificationType.DELETE,
        RelatedRef(RelatedModel.ANNOUNCEMENT),
    )
    return deleted
