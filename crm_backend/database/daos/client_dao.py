import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from crm_backend.database.daos.base_dao import BaseDao
from crm_backend.database.entities.client import Client

logger = logging.getLogger(__name__)


class ClientDao(BaseDao):
    """DAO for `Client`."""

    entity = Client

    def fetchByEmail(self, session: Session, email: str, exclude=None) -> Optional[Client]:
        try:
            query = session.query(Client).filter(Client.email == email.strip().lower())
            if exclude is not None:
                query = query.filter(Client.id != exclude)
            return query.first()
        except Exception as e:
            logger.error(f"Error in ClientDao.fetchByEmail. Error Message: {e}")
            raise e

    def fetchByOwner(self, session: Session, owner_id: UUID) -> List[Client]:
        return self.fetchAll(session, Client.owner_id == owner_id)
