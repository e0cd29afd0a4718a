import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from crm_backend.database.daos.base_dao import BaseDao
from crm_backend.database.entities.stored_file import StoredFile

logger = logging.getLogger(__name__)


class StoredFileDao(BaseDao):
    """DAO for `StoredFile`."""

    entity = StoredFile

    def fetchByKey(self, session: Session, key: str) -> Optional[StoredFile]:
        try:
            return session.query(StoredFile).filter(StoredFile.key == key).first()
        except Exception as e:
            logger.error(f"Error in StoredFileDao.fetchByKey. Error Message: {e}")
            raise e

    def fetchByOwner(self, session: Session, owner_id: UUID) -> List[StoredFile]:
        return self.fetchAll(session, StoredFile.owner_id == owner_id)
