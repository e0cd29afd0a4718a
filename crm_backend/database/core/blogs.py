"""
Service-layer operations for blog posts.

A post owns several assets: its thumbnail and one optional image per content
block. New assets are stored before the row that points at them is written;
assets a write no longer points at are discarded afterwards, best-effort.
Only the author may edit or delete a post.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from crm_backend.api.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from crm_backend.api.models import BlogDetails, BlogEdit, IdList
from crm_backend.database.core.mutation import MutationProtocol, Phase
from crm_backend.database.daos.content_dao import BlogDao
from crm_backend.database.entities.blog import Blog
from crm_backend.database.entities.notification import NotificationType, RelatedModel, RelatedRef
from crm_backend.database.entities.user import User
from crm_backend.database.helpers.transactionManagement import transactional
from crm_backend.storage.lifecycle import ObjectStorage, UploadedFile

logger = logging.getLogger(__name__)


@transactional
def fetch_blog(session: Session, blog_id: UUID) -> Blog:
    blog = BlogDao().fetchById(session, blog_id)
    if blog is None:
        raise NotFoundError("Blog not found")
    return blog


@transactional
def fetch_blogs(session: Session) -> List[Blog]:
    return BlogDao().fetchAll(session)


@transactional
def fetch_blogs_by_ids(session: Session, blog_ids) -> List[Blog]:
    return BlogDao().fetchByIds(session, blog_ids)


@transactional
def check_title(session: Session, title: str, exclude=None) -> None:
    criteria = [Blog.title == title]
    if exclude is not None:
        criteria.append(Blog.id != exclude)
    if BlogDao().count(session, *criteria):
        raise ConflictError(f"Blog with title: {title} already exists")


@transactional
def insert_blog(session: Session, blog: Blog) -> Blog:
    return BlogDao().create(session, blog)


@transactional
def save_blog(session: Session, blog: Blog) -> Blog:
    return BlogDao().save(session, blog)


@transactional
def delete_blog_rows(session: Session, blogs: List[Blog]) -> int:
    return BlogDao().deleteMany(session, blogs)


def _upload_errors(thumbnail: Optional[UploadedFile], images: List[UploadedFile]) -> List[str]:
    errors = thumbnail.errors() if thumbnail is not None else []
    for image in images:
        errors.extend(image.errors())
    return errors


def _store_assets(storage: ObjectStorage, thumbnail: Optional[UploadedFile], images: List[UploadedFile]):
    """Store the thumbnail and block images, all or none."""
    urls = storage.store_all(([thumbnail] if thumbnail is not None else []) + images)
    return (urls[0], urls[1:]) if thumbnail is not None else (None, urls)


def create_blog(
    protocol: MutationProtocol,
    author: User,
    data: BlogDetails,
    storage: ObjectStorage,
    thumbnail: Optional[UploadedFile] = None,
    images: Optional[List[UploadedFile]] = None,
) -> dict:
    """
    Create a post. ``images[i]`` becomes the image of content block ``i``.
    """
    images = images or []
    errors = data.collect_errors()
    if thumbnail is None:
        errors.append("Thumbnail image is required")
    errors.extend(_upload_errors(thumbnail, images))
    if len(images) > len(data.content_blocks):
        errors.append("Each image must belong to a content block")
    protocol.check(errors)
    with protocol.phase(Phase.VALIDATING):
        check_title(title=data.title)

    with protocol.phase(Phase.MUTATING_PRIMARY):
        thumbnail_url, image_urls = _store_assets(storage, thumbnail, images)
        blocks = [block.model_dump() for block in data.content_blocks]
        for index, block in enumerate(blocks):
            block["image"] = image_urls[index] if index < len(image_urls) else None
        blog = Blog(
            title=data.title,
            intro_description=data.intro_description,
            thumbnail=thumbnail_url,
            content_blocks=blocks,
            tags=data.tags,
            author_id=author.id,
        )
        try:
            blog = insert_blog(blog=blog)
        except Exception:
            for url in [thumbnail_url, *image_urls]:
                storage.discard(url)
            raise

    protocol.notify("Blog was created successfully", NotificationType.CREATE, RelatedRef(RelatedModel.BLOG, blog.id))
    return blog.to_dict()


def _authorize(blog: Blog, author: User, action: str) -> None:
    if blog.author_id != author.id:
        raise AuthorizationError(f"You are not authorized to {action} this blog")


def edit_blog(
    protocol: MutationProtocol,
    author: User,
    blog_id: UUID,
    data: BlogEdit,
    storage: ObjectStorage,
    thumbnail: Optional[UploadedFile] = None,
    images: Optional[List[UploadedFile]] = None,
) -> dict:
    """
    Update a post.

    ``data.content_blocks``, when sent, replaces the blocks; a block keeps
    the image at its position unless ``images`` holds a new one for it.
    """
    images = images or []
    protocol.check(data.collect_errors() + _upload_errors(thumbnail, images))
    with protocol.phase(Phase.VALIDATING):
        if data.title:
            check_title(title=data.title, exclude=blog_id)
    with protocol.phase(Phase.AUTHORIZING):
        blog = fetch_blog(blog_id=blog_id)
        _authorize(blog, author, "edit")
        block_count = len(data.content_blocks) if "content_blocks" in data.changes() else len(blog.content_blocks)
        if len(images) > block_count:
            raise ValidationError("Each image must belong to a content block")

    previous_assets = set(blog.assets())
    changes = data.changes()
    with protocol.phase(Phase.MUTATING_PRIMARY):
        thumbnail_url, image_urls = _store_assets(storage, thumbnail, images)
        if data.title:
            blog.title = data.title
        if data.intro_description:
            blog.intro_description = data.intro_description
        if "tags" in changes:
            blog.tags = data.tags
        existing = list(blog.content_blocks)
        blocks = [block.model_dump() for block in data.content_blocks] if "content_blocks" in changes else [dict(b) for b in existing]
        for index, block in enumerate(blocks):
            if index < len(image_urls):
                block["image"] = image_urls[index]
            else:
                block["image"] = existing[index].get("image") if index < len(existing) else None
        blog.content_blocks = blocks
        if thumbnail_url:
            blog.thumbnail = thumbnail_url
        try:
            blog = save_blog(blog=blog)
        except Exception:
            for url in [thumbnail_url, *image_urls]:
                storage.discard(url)
            raise

    for url in previous_assets - set(blog.assets()):
        protocol.dependents(storage.discard, ref=url)
    protocol.notify(f"Blog {blog.title} was edited successfully", NotificationType.EDIT, RelatedRef(RelatedModel.BLOG, blog.id))
    return blog.to_dict()


def delete_blog(protocol: MutationProtocol, author: User, blog_id: UUID, storage: ObjectStorage) -> None:
    with protocol.phase(Phase.AUTHORIZING):
        blog = fetch_blog(blog_id=blog_id)
        _authorize(blog, author, "delete")

    protocol.primary(delete_blog_rows, blogs=[blog])
    for url in blog.assets():
        protocol.dependents(storage.discard, ref=url)
    protocol.notify(f"Blog {blog.title} was deleted successfully", NotificationType.DELETE, RelatedRef(RelatedModel.BLOG, blog.id))


def delete_blogs(protocol: MutationProtocol, author: User, data: IdList, storage: ObjectStorage) -> int:
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.AUTHORIZING):
        wanted = set(data.parsed())
        blogs = fetch_blogs_by_ids(blog_ids=wanted)
        if len(blogs) != len(wanted) or any(blog.author_id != author.id for blog in blogs):
            raise AuthorizationError("You do not have permission to delete some or all of the selected blogs")

    deleted = protocol.primary(delete_blog_rows, blogs=blogs)
    for blog in blogs:
        for url in blog.assets():
            protocol.dependents(storage.discard, ref=url)
    protocol.notify(f"{deleted} blogs were deleted successfully", NotificationType.DELETE, RelatedRef(RelatedModel.BLOG))
    return deleted
