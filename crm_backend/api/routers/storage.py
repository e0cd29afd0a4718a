"""
Storage router: each user's own uploads in the bucket.

``reference`` path parameters accept a public URL, a full key
(``images/170000-logo.png``) or a bare filename.
"""

from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import StreamingResponse

from crm_backend.api.utils import get_owner, get_storage
from crm_backend.database.core import files
from crm_backend.database.core.mutation import MutationProtocol, respond
from crm_backend.database.entities.user import User
from crm_backend.storage.lifecycle import ObjectStorage, UploadedFile

router = APIRouter()


@router.post("/{owner_id}/upload")
def upload(
    uploads: List[UploadFile] = File(None, alias="files"),
    user: User = Depends(get_owner),
    storage: ObjectStorage = Depends(get_storage),
):
    protocol = MutationProtocol("storage.upload", actor_id=user.id)
    urls = files.upload_files(protocol, user, storage, [UploadedFile.from_upload(u) for u in uploads or []])
    return protocol.respond(data=urls, message="Files uploaded successfully", status_code=201, count=len(urls))


@router.get("/{owner_id}/fetch/report")
def report(user: User = Depends(get_owner), storage: ObjectStorage = Depends(get_storage)):
    """The caller's stored objects grouped per folder with each folder's total size."""
    return respond(data=files.usage_report(user, storage))


@router.put("/{owner_id}/replace/{reference:path}")
def replace(
    reference: str,
    file: UploadFile = File(...),
    user: User = Depends(get_owner),
    storage: ObjectStorage = Depends(get_storage),
):
    protocol = MutationProtocol("storage.replace", actor_id=user.id)
    url = files.replace_file(protocol, user, storage, reference, UploadedFile.from_upload(file))
    return protocol.respond(data=url, message="File replaced successfully")


@router.delete("/{owner_id}/delete/{reference:path}")
def delete(reference: str, user: User = Depends(get_owner), storage: ObjectStorage = Depends(get_storage)):
    protocol = MutationProtocol("storage.delete", actor_id=user.id)
    key = files.delete_file(protocol, user, storage, reference)
    return protocol.respond(data=key, message="File deleted successfully")


@router.get("/{owner_id}/download/{reference:path}")
def download(reference: str, user: User = Depends(get_owner), storage: ObjectStorage = Depends(get_storage)):
    filename, stream = files.download(user, storage, reference)
    return StreamingResponse(
        stream,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
