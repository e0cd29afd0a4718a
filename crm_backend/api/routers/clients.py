"""
Clients router.

Clients are private to their owner: every route is under ``/{owner_id}`` and
only returns or changes the caller's own clients.
"""

from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from crm_backend.api.models import ClientDetails, ClientEdit, FileReference, IdList
from crm_backend.api.utils import get_owner, get_storage, require_id
from crm_backend.database.core import clients
from crm_backend.database.core.mutation import MutationProtocol, respond
from crm_backend.database.entities.user import User
from crm_backend.storage.lifecycle import ObjectStorage, UploadedFile

router = APIRouter()


@router.post("/{owner_id}/new")
def new_client(data: ClientDetails, user: User = Depends(get_owner)):
    protocol = MutationProtocol("client.new", actor_id=user.id)
    client = clients.create_client(protocol, user, data)
    return protocol.respond(data=client, message="Client created successfully", status_code=201)


@router.put("/{owner_id}/edit/{client_id}")
def edit_client(client_id: str, data: ClientEdit, user: User = Depends(get_owner)):
    protocol = MutationProtocol("client.edit", actor_id=user.id)
    client = clients.edit_client(protocol, user, require_id(client_id, "Client"), data)
    return protocol.respond(data=client, message="Client updated successfully")


@router.post("/{owner_id}/convert/{lead_id}")
def convert(lead_id: str, user: User = Depends(get_owner)):
    """Turn a lead into a client owned by the caller; the lead is deleted."""
    protocol = MutationProtocol("client.convert", actor_id=user.id)
    client = clients.convert_lead(protocol, user, require_id(lead_id, "Lead"))
    return protocol.respond(data=client, message="Lead converted to client successfully", status_code=201)


@router.get("/{owner_id}/fetch/all")
def fetch_all(user: User = Depends(get_owner)):
    items = [client.to_dict() for client in clients.fetch_clients(owner=user)]
    return respond(data=items, count=len(items))


@router.get("/{owner_id}/fetch/single/{client_id}")
def fetch_single(client_id: str, user: User = Depends(get_owner)):
    client = clients.fetch_owned_client(client_id=require_id(client_id, "Client"), owner=user)
    return respond(data=client.to_dict())


@router.put("/{owner_id}/files/add/{client_id}")
def add_files(
    client_id: str,
    files: List[UploadFile] = File(None),
    user: User = Depends(get_owner),
    storage: ObjectStorage = Depends(get_storage),
):
    """Upload files (multipart field ``files``) and attach them to the client."""
    uploaded = [UploadedFile.from_upload(upload) for upload in files or []]
    protocol = MutationProtocol("client.add_files", actor_id=user.id)
    client = clients.add_files(protocol, user, require_id(client_id, "Client"), uploaded, storage)
    return protocol.respond(data=client, message="Files added successfully")


@router.put("/{owner_id}/files/remove/{client_id}")
def remove_file(
    client_id: str,
    data: FileReference,
    user: User = Depends(get_owner),
    storage: ObjectStorage = Depends(get_storage),
):
    protocol = MutationProtocol("client.remove_file", actor_id=user.id)
    client = clients.remove_file(protocol, user, require_id(client_id, "Client"), data.file, storage)
    return protocol.respond(data=client, message="File removed successfully")


@router.delete("/{owner_id}/delete/single/{client_id}")
def delete_single(client_id: str, user: User = Depends(get_owner), storage: ObjectStorage = Depends(get_storage)):
    protocol = MutationProtocol("client.delete", actor_id=user.id)
    clients.delete_client(protocol, user, require_id(client_id, "Client"), storage)
    return protocol.respond(message="Client deleted successfully")


@router.delete("/{owner_id}/delete/many")
def delete_many(data: IdList, user: User = Depends(get_owner), storage: ObjectStorage = Depends(get_storage)):
    protocol = MutationProtocol("client.delete_many", actor_id=user.id)
    deleted = clients.delete_clients(protocol, user, data, storage)
    return protocol.respond(message=f"{deleted} clients deleted successfully", count=deleted)
