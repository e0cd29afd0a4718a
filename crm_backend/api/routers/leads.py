"""Leads router. Every route needs a token."""

from fastapi import APIRouter, Depends

from crm_backend.api.models import IdList, LeadDetails, LeadEdit
from crm_backend.api.utils import get_current_user, get_owner, require_id
from crm_backend.database.core import leads
from crm_backend.database.core.mutation import MutationProtocol, respond
from crm_backend.database.entities.user import User

router = APIRouter()


@router.post("/{owner_id}/new")
def new_lead(data: LeadDetails, user: User = Depends(get_owner)):
    protocol = MutationProtocol("lead.new", actor_id=user.id)
    lead = leads.create_lead(protocol, data)
    return protocol.respond(data=lead, message="Lead created successfully", status_code=201)


@router.put("/{owner_id}/edit/{lead_id}")
def edit_lead(lead_id: str, data: LeadEdit, user: User = Depends(get_owner)):
    protocol = MutationProtocol("lead.edit", actor_id=user.id)
    lead = leads.edit_lead(protocol, require_id(lead_id, "Lead"), data)
    return protocol.respond(data=lead, message="Lead updated successfully")


@router.get("/fetch/all")
def fetch_all(user: User = Depends(get_current_user)):
    items = [lead.to_dict() for lead in leads.fetch_leads()]
    return respond(data=items, count=len(items))


@router.get("/fetch/single/{lead_id}")
def fetch_single(lead_id: str, user: User = Depends(get_current_user)):
    return respond(data=leads.fetch_lead(lead_id=require_id(lead_id, "Lead")).to_dict())


@router.delete("/{owner_id}/delete/single/{lead_id}")
def delete_single(lead_id: str, user: User = Depends(get_owner)):
    protocol = MutationProtocol("lead.delete", actor_id=user.id)
    leads.delete_lead(protocol, require_id(lead_id, "Lead"))
    return protocol.respond(message="Lead deleted successfully")


@router.delete("/{owner_id}/delete/many")
def delete_many(data: IdList, user: User = Depends(get_owner)):
    protocol = MutationProtocol("lead.delete_many", actor_id=user.id)
    deleted = leads.delete_leads(protocol, data)
    return protocol.respond(message=f"{deleted} leads deleted successfully", count=deleted)
