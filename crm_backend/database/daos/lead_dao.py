import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from crm_backend.database.daos.base_dao import BaseDao
from crm_backend.database.entities.lead import Lead

logger = logging.getLogger(__name__)


class LeadDao(BaseDao):
    """DAO for `Lead`."""

    entity = Lead

    def fetchDuplicate(self, session: Session, fullname: str, email: str, exclude=None) -> Optional[Lead]:
        """
        Fetch a lead sharing ``fullname`` or ``email``, ignoring the row ``exclude``.

        This is a read before the write; two concurrent creates can both pass
        it, and the unique index on ``email`` is what rejects the second one.
        """
        try:
            query = session.query(Lead).filter(or_(Lead.fullname == fullname, Lead.email == email.strip().lower()))
            if exclude is not None:
                query = query.filter(Lead.id != exclude)
            return query.first()
        except Exception as e:
            logger.error(f"Error in LeadDao.fetchDuplicate. Error Message: {e}")
            raise e
