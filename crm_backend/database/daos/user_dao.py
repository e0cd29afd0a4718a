"""
User DAO

Purpose
-------
Data-access layer for the `User` ORM entity:
- Creation with password hashing
- Lookup by email, telephone and reset-token digest

Passwords are hashed with `EncryptionDec.hash_password(...)` before insert;
callers hand over the plaintext.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from crm_backend.crypt.encrypt_decrypt import EncryptionDec
from crm_backend.database.daos.base_dao import BaseDao
from crm_backend.database.entities.user import User

logger = logging.getLogger(__name__)


class UserDao(BaseDao):
    """
    Data Access Object (DAO) for managing User entities.
    """

    entity = User

    def createUser(self, session: Session, user_data: User) -> User:
        """
        Create a new user in the database with a hashed password.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        user_data : User
            User entity holding the plaintext password.

        Returns
        -------
        User
            The staged user.
        """
        try:
            enc = EncryptionDec()
            user_data.password = enc.hash_password(text=user_data.password)
            return self.create(session, user_data)
        except Exception as e:
            logger.error(f"Error in UserDao.createUser. Error Message: {e}")
            raise e

    def fetchUserByEmail(self, session: Session, email: str) -> Optional[User]:
        try:
            return session.query(User).filter(User.email == email.strip().lower()).first()
        except Exception as e:
            logger.error(f"Error in UserDao.fetchUserByEmail. Error Message: {e}")
            raise e

    def fetchUserByTelephone(self, session: Session, telephone: str) -> Optional[User]:
        try:
            return session.query(User).filter(User.telephone == telephone).first()
        except Exception as e:
            logger.error(f"Error in UserDao.fetchUserByTelephone. Error Message: {e}")
            raise e

    def fetchUserByResetToken(self, session: Session, digest: str) -> Optional[User]:
        """Fetch the user holding the reset-token ``digest`` (expiry is checked by the caller)."""
        try:
            return session.query(User).filter(User.reset_password_token == digest).first()
        except Exception as e:
            logger.error(f"Error in UserDao.fetchUserByResetToken. Error Message: {e}")
            raise e
