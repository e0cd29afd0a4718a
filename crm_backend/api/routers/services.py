"""Services router. Reads are public; writes need the owner's token."""

from fastapi import APIRouter, Depends

from crm_backend.api.models import IdList, ServiceDetails, ServiceEdit
from crm_backend.api.utils import get_owner, require_id
from crm_backend.database.core import services
from crm_backend.database.core.mutation import MutationProtocol, respond
from crm_backend.database.entities.user import User

router = APIRouter()


@router.post("/{owner_id}/new")
def new_service(data: ServiceDetails, user: User = Depends(get_owner)):
    protocol = MutationProtocol("service.new", actor_id=user.id)
    service = services.create_service(protocol, data)
    return protocol.respond(data=service, message="Service created successfully", status_code=201)


@router.put("/{owner_id}/edit/{service_id}")
def edit_service(service_id: str, data: ServiceEdit, user: User = Depends(get_owner)):
    protocol = MutationProtocol("service.edit", actor_id=user.id)
    service = services.edit_service(protocol, require_id(service_id, "Service"), data)
    return protocol.respond(data=service, message="Service updated successfully")


@router.get("/fetch/all")
def fetch_all():
    items = [service.to_dict() for service in services.fetch_services()]
    return respond(data=items, count=len(items))


@router.get("/fetch/single/{service_id}")
def fetch_single(service_id: str):
    """A service with its leads and clients resolved."""
    return respond(data=services.fetch_service_details(service_id=require_id(service_id, "Service")))


@router.delete("/{owner_id}/delete/single/{service_id}")
def delete_single(service_id: str, user: User = Depends(get_owner)):
    protocol = MutationProtocol("service.delete", actor_id=user.id)
    services.delete_service(protocol, require_id(service_id, "Service"))
    return protocol.respond(message="Service deleted successfully")


@router.delete("/{owner_id}/delete/many")
def delete_many(data: IdList, user: User = Depends(get_owner)):
    protocol = MutationProtocol("service.delete_many", actor_id=user.id)
    deleted = services.delete_services(protocol, data)
    return protocol.respond(message=f"{deleted} services deleted successfully", count=deleted)
