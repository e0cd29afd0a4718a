"""FAQ router. Reads are public."""

from fastapi import APIRouter, Depends

from crm_backend.api.models import FAQDetails, FAQEdit, IdList
from crm_backend.api.utils import get_owner, require_id
from crm_backend.database.core import faqs
from crm_backend.database.core.mutation import MutationProtocol, respond
from crm_backend.database.entities.user import User

router = APIRouter()


@router.post("/{owner_id}/new")
def new_faq(data: FAQDetails, user: User = Depends(get_owner)):
    protocol = MutationProtocol("faq.new", actor_id=user.id)
    faq = faqs.create_faq(protocol, user, data)
    return protocol.respond(data=faq, message="FAQ created successfully", status_code=201)


@router.put("/{owner_id}/edit/{faq_id}")
def edit_faq(faq_id: str, data: FAQEdit, user: User = Depends(get_owner)):
    protocol = MutationProtocol("faq.edit", actor_id=user.id)
    faq = faqs.edit_faq(protocol, user, require_id(faq_id, "FAQ"), data)
    return protocol.respond(data=faq, message="FAQ updated successfully")


@router.get("/fetch/all")
def fetch_all():
    items = [faq.to_dict() for faq in faqs.fetch_faqs()]
    return respond(data=items, count=len(items))


@router.get("/fetch/single/{faq_id}")
def fetch_single(faq_id: str):
    return respond(data=faqs.fetch_faq(faq_id=require_id(faq_id, "FAQ")).to_dict())


@router.delete("/{owner_id}/delete/single/{faq_id}")
def delete_single(faq_id: str, user: User = Depends(get_owner)):
    protocol = MutationProtocol("faq.delete", actor_id=user.id)
    faqs.delete_faq(protocol, user, require_id(faq_id, "FAQ"))
    return protocol.respond(message="FAQ deleted successfully")


@router.delete("/{owner_id}/delete/many")
def delete_many(data: IdList, user: User = Depends(get_owner)):
    protocol = MutationProtocol("faq.delete_many", actor_id=user.id)
    deleted = faqs.delete_faqs(protocol, user, data)
    return protocol.respond(message=f"{deleted} FAQs deleted successfully", count=deleted)
