"""
Blogs router.

Writes are multipart forms: ``title``, ``introDescription``, ``tags`` (JSON
list or comma separated), ``contentBlocks`` (JSON list of ``{title,
details}``), a ``thumbnail`` file and ``images``, where ``images[i]`` is the
image of content block ``i``. Reads are public.
"""

import json
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from crm_backend.api.errors import ValidationError
from crm_backend.api.models import BlogDetails, BlogEdit, IdList
from crm_backend.api.utils import get_owner, get_storage, require_id
from crm_backend.database.core import blogs
from crm_backend.database.core.mutation import MutationProtocol, respond
from crm_backend.database.entities.user import User
from crm_backend.storage.lifecycle import ObjectStorage, UploadedFile

router = APIRouter()


def parse_blog_form(schema, title, intro_description, content_blocks, tags):
    """Build ``schema`` from form fields, decoding the JSON-encoded ones."""
    sent = {"title": title, "introDescription": intro_description}
    if content_blocks is not None:
        try:
            sent["contentBlocks"] = json.loads(content_blocks)
        except ValueError:
            raise ValidationError("Content blocks must be a valid JSON list")
        if not isinstance(sent["contentBlocks"], list):
            raise ValidationError("Content blocks must be a valid JSON list")
    if tags is not None:
        try:
            decoded = json.loads(tags)
        except ValueError:
            decoded = [tag.strip() for tag in tags.split(",") if tag.strip()]
        sent["tags"] = decoded if isinstance(decoded, list) else [str(decoded)]
    return schema(**{key: value for key, value in sent.items() if value is not None})


def read_uploads(thumbnail: Optional[UploadFile], images: Optional[List[UploadFile]]):
    return (
        UploadedFile.from_upload(thumbnail) if thumbnail is not None else None,
        [UploadedFile.from_upload(image) for image in images or []],
    )


@router.post("/{owner_id}/new")
def new_blog(
    title: Optional[str] = Form(None),
    introDescription: Optional[str] = Form(None),
    contentBlocks: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    images: Optional[List[UploadFile]] = File(None),
    user: User = Depends(get_owner),
    storage: ObjectStorage = Depends(get_storage),
):
    data = parse_blog_form(BlogDetails, title, introDescription, contentBlocks, tags)
    thumbnail_file, image_files = read_uploads(thumbnail, images)
    protocol = MutationProtocol("blog.new", actor_id=user.id)
    blog = blogs.create_blog(protocol, user, data, storage, thumbnail=thumbnail_file, images=image_files)
    return protocol.respond(data=blog, message="Blog created successfully", status_code=201)


@router.put("/{owner_id}/edit/{blog_id}")
def edit_blog(
    blog_id: str,
    title: Optional[str] = Form(None),
    introDescription: Optional[str] = Form(None),
    contentBlocks: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    images: Optional[List[UploadFile]] = File(None),
    user: User = Depends(get_owner),
    storage: ObjectStorage = Depends(get_storage),
):
    data = parse_blog_form(BlogEdit, title, introDescription, contentBlocks, tags)
    thumbnail_file, image_files = read_uploads(thumbnail, images)
    protocol = MutationProtocol("blog.edit", actor_id=user.id)
    blog = blogs.edit_blog(
        protocol, user, require_id(blog_id, "Blog"), data, storage, thumbnail=thumbnail_file, images=image_files
    )
    return protocol.respond(data=blog, message="Blog updated successfully")


@router.get("/fetch/all")
def fetch_all():
    items = [blog.to_dict() for blog in blogs.fetch_blogs()]
    return respond(data=items, count=len(items))


@router.get("/fetch/single/{blog_id}")
def fetch_single(blog_id: str):
    return respond(data=blogs.fetch_blog(blog_id=require_id(blog_id, "Blog")).to_dict())


@router.delete("/{owner_id}/delete/single/{blog_id}")
def delete_single(blog_id: str, user: User = Depends(get_owner), storage: ObjectStorage = Depends(get_storage)):
    protocol = MutationProtocol("blog.delete", actor_id=user.id)
    blogs.delete_blog(protocol, user, require_id(blog_id, "Blog"), storage)
    return protocol.respond(message="Blog deleted successfully")


@router.delete("/{owner_id}/delete/many")
def delete_many(data: IdList, user: User = Depends(get_owner), storage: ObjectStorage = Depends(get_storage)):
    protocol = MutationProtocol("blog.delete_many", actor_id=user.id)
    deleted = blogs.delete_blogs(protocol, user, data, storage)
    return protocol.respond(message=f"{deleted} blogs deleted successfully", count=deleted)
