from sqlalchemy.orm import Session

from crm_backend.database.daos.base_dao import BaseDao
from crm_backend.database.entities.service import Service


class ServiceDao(BaseDao):
    """DAO for `Service`. Reference arrays are maintained through ``updateReferences``."""

    entity = Service

    def fetchByName(self, session: Session, name: str):
        return session.query(Service).filter(Service.name == name).first()
