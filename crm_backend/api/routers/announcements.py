"""Announcements router. Reads are public."""

from fastapi import APIRouter, Depends

from crm_backend.api.models import AnnouncementDetails, IdList
from crm_backend.api.utils import get_owner, require_id
from crm_backend.database.core import announcements
from crm_backend.database.core.mutation import MutationProtocol, respond
from crm_backend.database.entities.user import User

router = APIRouter()


@router.post("/{owner_id}/new")
def new_announcement(data: AnnouncementDetails, user: User = Depends(get_owner)):
    protocol = MutationProtocol("announcement.new", actor_id=user.id)
    announcement = announcements.create_announcement(protocol, user, data)
    return protocol.respond(data=announcement, message="Announcement created successfully", status_code=201)


@router.get("/fetch/all")
def fetch_all():
    items = [a.to_dict() for a in announcements.fetch_announcements()]
    return respond(data=items, count=len(items))


@router.get("/fetch/single/{announcement_id}")
def fetch_single(announcement_id: str):
    announcement = announcements.fetch_announcement(announcement_id=require_id(announcement_id, "Announcement"))
    return respond(data=announcement.to_dict())


@router.delete("/{owner_id}/delete/single/{announcement_id}")
def delete_single(announcement_id: str, user: User = Depends(get_owner)):
    protocol = MutationProtocol("announcement.delete", actor_id=user.id)
    announcements.delete_announcement(protocol, user, require_id(announcement_id, "Announcement"))
    return protocol.respond(message="Announcement deleted successfully")


@router.delete("/{owner_id}/delete/many")
def delete_many(data: IdList, user: User = Depends(get_owner)):
    protocol = MutationProtocol("announcement.delete_many", actor_id=user.id)
    deleted = announcements.delete_announcements(protocol, user, data)
    return protocol.respond(message=f"{deleted} announcements deleted successfully", count=deleted)
