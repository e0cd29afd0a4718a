"""Service-layer operations for FAQ entries. Only the creator may edit or delete one."""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from crm_backend.api.errors import AuthorizationError, NotFoundError
from crm_backend.api.models import FAQDetails, FAQEdit, IdList
from crm_backend.database.core.mutation import MutationProtocol, Phase
from crm_backend.database.daos.content_dao import FAQDao
from crm_backend.database.entities.faq import FAQ
from crm_backend.database.entities.notification import NotificationType, RelatedModel, RelatedRef
from crm_backend.database.entities.user import User
from crm_backend.database.helpers.transactionManagement import transactional

logger = logging.getLogger(__name__)


@transactional
def fetch_faq(session: Session, faq_id: UUID) -> FAQ:
    faq = FAQDao().fetchById(session, faq_id)
    if faq is None:
        raise NotFoundError("FAQ not found")
    return faq


@transactional
def fetch_faqs(session: Session) -> List[FAQ]:
    return FAQDao().fetchAll(session)


@transactional
def fetch_faqs_by_ids(session: Session, faq_ids) -> List[FAQ]:
    return FAQDao().fetchByIds(session, faq_ids)


@transactional
def insert_faq(session: Session, faq: FAQ) -> FAQ:
    return FAQDao().create(session, faq)


@transactional
def save_faq(session: Session, faq: FAQ) -> FAQ:
    return FAQDao().save(session, faq)


@transactional
def delete_faq_rows(session: Session, faqs: List[FAQ]) -> int:
    return FAQDao().deleteMany(session, faqs)


def _fetch_own_faq(faq_id: UUID, author: User, action: str) -> FAQ:
    faq = fetch_faq(faq_id=faq_id)
    if faq.created_by != author.id:
        raise AuthorizationError(f"You are not authorized to {action} this FAQ")
    return faq


def create_faq(protocol: MutationProtocol, author: User, data: FAQDetails) -> dict:
    protocol.check(data.collect_errors())
    faq = protocol.primary(insert_faq, faq=FAQ(question=data.question, answer=data.answer, created_by=author.id))
    protocol.notify("A new FAQ was created", NotificationType.CREATE, RelatedRef(RelatedModel.FAQ, faq.id))
    return faq.to_dict()


def edit_faq(protocol: MutationProtocol, author: User, faq_id: UUID, data: FAQEdit) -> dict:
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.AUTHORIZING):
        faq = _fetch_own_faq(faq_id, author, "edit")

    for field, value in data.changes().items():
        if value:
            setattr(faq, field, value)
    faq = protocol.primary(save_faq, faq=faq)
    protocol.notify("An FAQ was edited", NotificationType.EDIT, RelatedRef(RelatedModel.FAQ, faq.id))
    return faq.to_dict()


def delete_faq(protocol: MutationProtocol, author: User, faq_id: UUID) -> None:
    with protocol.phase(Phase.AUTHORIZING):
        faq = _fetch_own_faq(faq_id, author, "delete")

    protocol.primary(delete_faq_rows, faqs=[faq])
    protocol.notify("An FAQ was deleted", NotificationType.DELETE, RelatedRef(RelatedModel.FAQ, faq.id))


def delete_faqs(protocol: MutationProtocol, author: User, data: IdList) -> int:
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.AUTHORIZING):
        wanted = set(data.parsed())
        faqs = fetch_faqs_by_ids(faq_ids=wanted)
        if len(faqs) != len(wanted) or any(faq.created_by != author.id for faq in faqs):
            raise AuthorizationError("You do not have permission to delete some or all of the selected FAQs")

    deleted = protocol.primary(delete_faq_rows, faqs=faqs)
    protocol.notify(f"{deleted} FAQs were deleted", NotificationType.DELETE, RelatedRef(RelatedModel.FAQ))
    return deleted
