"""
JWT utilities and request dependencies.

Functions
---------
create_access_token(user_id) -> str
    Issues a signed ``"Bearer <jwt>"`` token carrying ``sub``, ``iat`` and ``exp``.
verify_token(token) -> str
    Verifies a bearer token and returns its subject. Malformed headers,
    expired tokens and bad signatures raise ``AuthenticationError`` with
    distinct messages.
get_current_user / get_optional_user / get_owner
    FastAPI dependencies resolving the caller from the ``Authorization`` header.
get_storage
    FastAPI dependency returning the process-wide ``ObjectStorage``.

Environment contract (from `settings`)
--------------------------------------
SECRET_KEY : str
    HMAC signing key for JWTs.
ALGORITHM : str
    JWT signing algorithm (e.g., "HS256").
ACCESS_TOKEN_EXPIRE_MINUTES : int
    Token lifetime window in minutes.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, Request
from jose import ExpiredSignatureError, JWTError, jwt

from crm_backend.api.errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from crm_backend.api.models import parse_id
from crm_backend.database.config.config import settings
from crm_backend.database.core.users import fetch_user
from crm_backend.database.entities.user import User
from crm_backend.storage.lifecycle import ObjectStorage

logger = logging.getLogger(__name__)

BEARER_PATTERN = re.compile(r"^Bearer [A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+$")


def create_access_token(user_id: UUID) -> str:
    """
    Create a signed JWT access token.

    Parameters
    ----------
    user_id : UUID
        Subject of the token; retrieved in `verify_token`.

    Returns
    -------
    str
        ``"Bearer <jwt>"``, ready to be sent back as the Authorization header.
    """
    issued = int(datetime.now(timezone.utc).timestamp())
    claims = {
        "sub": str(user_id),
        "iat": issued,
        "exp": issued + int(settings.ACCESS_TOKEN_EXPIRE_MINUTES) * 60,
    }
    return "Bearer " + jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(authorization: Optional[str]) -> str:
    """
    Verify a bearer token and return its subject.

    Parameters
    ----------
    authorization : str | None
        Value of the ``Authorization`` header.

    Returns
    -------
    str
        The `sub` claim.

    Raises
    ------
    AuthenticationError
        "Invalid Headers" for a missing or malformed header, "Token has
        expired" for an expired token, "Invalid Token" for a bad signature or
        a token without subject.
    """
    if not authorization or not BEARER_PATTERN.match(authorization.strip()):
        raise AuthenticationError("Invalid Headers")
    token = authorization.strip().split(" ", 1)[1]
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except JWTError as e:
        logger.warning(f"Rejected token: {e}")
        raise AuthenticationError("Invalid Token")
    subject = payload.get("sub")
    if not subject:
        raise AuthenticationError("Invalid Token")
    return subject


def get_current_user(authorization: Optional[str] = Header(None)) -> User:
    """Dependency: the authenticated user, or 401."""
    user_id = parse_id(verify_token(authorization))
    user = fetch_user(user_id=user_id) if user_id else None
    if user is None:
        raise AuthenticationError("Not authorized to access this route")
    return user


def get_owner(owner_id: str, user: User = Depends(get_current_user)) -> User:
    """
    Dependency for ``/{owner_id}/...`` routes: ``owner_id`` must name an
    existing user and be the authenticated caller.
    """
    parsed = parse_id(owner_id)
    if parsed is None:
        raise ValidationError("User ID is invalid")
    if parsed != user.id:
        if fetch_user(user_id=parsed) is None:
            raise NotFoundError("User not found")
        raise AuthorizationError("You are not authorized to perform this action")
    return user


def require_id(value: str, label: str) -> UUID:
    """Parse a path identifier, answering 404 for malformed ids."""
    parsed = parse_id(value)
    if parsed is None:
        raise NotFoundError(f"{label} not found")
    return parsed


def get_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage
