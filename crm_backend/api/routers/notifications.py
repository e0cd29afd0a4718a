"""Notifications router: the activity feed. Every route needs a token."""

from fastapi import APIRouter, Depends

from crm_backend.api.models import IdList
from crm_backend.api.utils import get_current_user, get_owner, require_id
from crm_backend.database.core import notifications
from crm_backend.database.core.mutation import MutationProtocol, Phase, respond
from crm_backend.database.entities.user import User

router = APIRouter()


@router.get("/fetch/all")
def fetch_all(user: User = Depends(get_current_user)):
    feed = [n.to_dict() for n in notifications.fetch_all_notifications()]
    return respond(data=feed, count=len(feed))


@router.get("/{owner_id}/fetch/mine")
def fetch_mine(user: User = Depends(get_owner)):
    """The caller's notifications, newest first, and how many are unread."""
    feed = notifications.fetch_user_notifications(user_id=user.id)
    items = [n.to_dict() for n in feed["notifications"]]
    return respond(data={"notifications": items, "unread": feed["unread"]}, count=len(items))


@router.get("/{owner_id}/fetch/single/{notification_id}")
def fetch_single(notification_id: str, user: User = Depends(get_owner)):
    notification = notifications.fetch_notification(
        notification_id=require_id(notification_id, "Notification"), user_id=user.id
    )
    return respond(data=notification.to_dict())


@router.put("/{owner_id}/read")
def mark_read(data: IdList, user: User = Depends(get_owner)):
    protocol = MutationProtocol("notification.read", actor_id=user.id)
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.AUTHORIZING):
        owned = notifications.fetch_owned_notifications(notification_ids=data.parsed(), user_id=user.id)
    updated = protocol.primary(notifications.mark_notifications_read, notifications=owned)
    return protocol.respond(message=f"{updated} notifications marked as read", count=updated)


@router.delete("/{owner_id}/delete/single/{notification_id}")
def delete_single(notification_id: str, user: User = Depends(get_owner)):
    protocol = MutationProtocol("notification.delete", actor_id=user.id)
    with protocol.phase(Phase.AUTHORIZING):
        notification = notifications.fetch_notification(
            notification_id=require_id(notification_id, "Notification"), user_id=user.id
        )
    protocol.primary(notifications.delete_notifications, notifications=[notification])
    return protocol.respond(message="Notification deleted successfully")


@router.delete("/{owner_id}/delete/many")
def delete_many(data: IdList, user: User = Depends(get_owner)):
    protocol = MutationProtocol("notification.delete_many", actor_id=user.id)
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.AUTHORIZING):
        owned = notifications.fetch_owned_notifications(notification_ids=data.parsed(), user_id=user.id)
    deleted = protocol.primary(notifications.delete_notifications, notifications=owned)
    return protocol.respond(message=f"{deleted} notifications deleted successfully", count=deleted)
