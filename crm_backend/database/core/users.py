"""
Service-layer operations for accounts and authentication.

Covers registration, login, account activation (one-time code), password
reset and profile edits. Reads and single writes are `@transactional`
functions; the request flows run them one phase at a time through a
:class:`MutationProtocol`, so every write commits before the next phase.

Email delivery is treated as a dependent write: when a send fails, the code
or token that assumed delivery is cleared again and a ``DependencyError``
reaches the client.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from crm_backend.api.errors import (
    AuthenticationError,
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from crm_backend.api.models import NewPassword, UserCredentials, UserData, UserEdit, UserEmail, VerifCode
from crm_backend.crypt.encrypt_decrypt import EncryptionDec
from crm_backend.database.config.config import settings
from crm_backend.database.core import mailer
from crm_backend.database.core.mutation import MutationProtocol, Phase
from crm_backend.database.daos.user_dao import UserDao
from crm_backend.database.entities.columns import as_utc
from crm_backend.database.entities.notification import NotificationType, RelatedModel, RelatedRef
from crm_backend.database.entities.user import User
from crm_backend.database.helpers.transactionManagement import transactional
from crm_backend.storage.lifecycle import ObjectStorage, UploadedFile

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials, please double-check and try again."
RESET_LINK_SENT = "If the email address exists in our system, we will send a reset link."


@transactional
def fetch_user(session: Session, user_id: UUID) -> Optional[User]:
    return UserDao().fetchById(session, user_id)


@transactional
def fetch_user_by_email(session: Session, email: str) -> Optional[User]:
    return UserDao().fetchUserByEmail(session, email)


@transactional
def fetch_user_by_telephone(session: Session, telephone: str) -> Optional[User]:
    return UserDao().fetchUserByTelephone(session, telephone)


@transactional
def fetch_user_by_reset_token(session: Session, digest: str) -> Optional[User]:
    return UserDao().fetchUserByResetToken(session, digest)


@transactional
def insert_user(session: Session, user: User) -> User:
    return UserDao().createUser(session, user)


@transactional
def save_user(session: Session, user: User) -> User:
    return UserDao().save(session, user)


def _expires_in(minutes: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(minutes=minutes)


def _is_expired(expiry: Optional[datetime]) -> bool:
    return expiry is None or as_utc(expiry) <= datetime.now(timezone.utc)


def register_user(protocol: MutationProtocol, data: UserData, issue_token) -> dict:
    """
    Create an account and email its activation code.

    Parameters
    ----------
    protocol : MutationProtocol
        Protocol run of the request.
    data : UserData
        Registration body.
    issue_token : callable
        Maps a user id to a bearer token.

    Returns
    -------
    dict
        ``{"user": <public user>, "token": "Bearer ..."}``.

    Raises
    ------
    ValidationError
        Missing fields or password policy violation.
    ConflictError
        Email or telephone already registered.
    DependencyError
        The activation email could not be sent; the account exists without
        a pending code and the client has to ask for a new one.
    """
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.VALIDATING):
        if fetch_user_by_email(email=data.email):
            raise ConflictError("Email already exists")
        if data.telephone and fetch_user_by_telephone(telephone=data.telephone):
            raise ConflictError("Telephone already exists")

    enc = EncryptionDec()
    code = enc.generate_verification_code()
    user = User(
        fullname=data.fullname,
        email=data.email,
        password=data.password,
        role=data.role,
        country=data.country,
        city=data.city,
        telephone=data.telephone,
    )
    user.otp_code = code
    user.otp_expiry = _expires_in(settings.OTP_EXPIRE_MINUTES)
    user = protocol.primary(insert_user, user=user)

    protocol.dependents(_deliver_code, user=user, code=code)
    protocol.notify(
        "New user registered successfully",
        NotificationType.CREATE,
        RelatedRef(RelatedModel.USER, user.id),
        created_by=user.id,
    )
    logger.info(f"User created successfully: {user.email}")
    return {"user": user.to_dict(), "token": issue_token(user.id)}


def _deliver_code(user: User, code: str) -> None:
    try:
        mailer.send_verification_code(email=user.email, code=code)
    except Exception as e:
        logger.error(f"Activation code for {user.email} was not sent: {e}")
        user.otp_code = None
        user.otp_expiry = None
        save_user(user=user)
        raise DependencyError("Error sending email")


def login_user(data: UserCredentials, issue_token) -> str:
    """
    Authenticate by email and password.

    Unknown email and wrong password give the same 401 message.
    """
    errors = data.collect_errors()
    if errors:
        raise ValidationError(errors)
    user = fetch_user_by_email(email=data.email)
    if user is None or not EncryptionDec().check_passwords(data.password, user.password):
        logger.warning(f"Failed login for {data.email}")
        raise AuthenticationError(INVALID_CREDENTIALS)
    return issue_token(user.id)


def verify_code(protocol: MutationProtocol, data: VerifCode, issue_token) -> str:
    """Confirm the activation code and mark the account verified."""
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.AUTHORIZING):
        user = fetch_user_by_email(email=data.email)
        if user is None:
            raise NotFoundError("User not found.")
        if _is_expired(user.otp_expiry):
            raise ValidationError("OTP has expired.")
        if data.code != user.otp_code:
            raise ValidationError("Invalid OTP.")

    user.verified = True
    user.otp_code = None
    user.otp_expiry = None
    user = protocol.primary(save_user, user=user)
    protocol.notify("User verified the account email", NotificationType.EDIT, RelatedRef(RelatedModel.USER, user.id), created_by=user.id)
    return issue_token(user.id)


def resend_code(protocol: MutationProtocol, data: UserEmail) -> None:
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.AUTHORIZING):
        user = fetch_user_by_email(email=data.email)
        if user is None:
            raise NotFoundError("User not found.")
        if user.verified:
            raise ValidationError("Account is already verified")

    code = EncryptionDec().generate_verification_code()
    user.otp_code = code
    user.otp_expiry = _expires_in(settings.OTP_EXPIRE_MINUTES)
    user = protocol.primary(save_user, user=user)
    protocol.dependents(_deliver_code, user=user, code=code)


def forgot_password(protocol: MutationProtocol, data: UserEmail) -> str:
    """
    Store a reset-token digest and email the raw token as a link.

    Returns the generic confirmation message whether or not the email is
    registered.

    Raises
    ------
    DependencyError
        The email could not be sent; the token has been cleared again.
    """
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.AUTHORIZING):
        user = fetch_user_by_email(email=data.email)
        if user is None:
            logger.info(f"Password reset requested for unknown email {data.email}")
            return RESET_LINK_SENT

    token, digest = EncryptionDec().generate_reset_token()
    user.reset_password_token = digest
    user.reset_password_expiry = _expires_in(settings.RESET_TOKEN_EXPIRE_MINUTES)
    user = protocol.primary(save_user, user=user)
    protocol.dependents(_deliver_reset_link, user=user, token=token)
    return RESET_LINK_SENT


def _deliver_reset_link(user: User, token: str) -> None:
    try:
        mailer.send_reset_link(email=user.email, token=token)
    except Exception as e:
        logger.error(f"Reset link for {user.email} was not sent: {e}")
        user.reset_password_token = None
        user.reset_password_expiry = None
        save_user(user=user)
        raise DependencyError("Failed to send reset email. Please try again later.")


def reset_password(protocol: MutationProtocol, token: str, data: NewPassword) -> None:
    protocol.check(data.collect_errors())
    with protocol.phase(Phase.AUTHORIZING):
        user = fetch_user_by_reset_token(digest=EncryptionDec().digest_token(token))
        if user is None or _is_expired(user.reset_password_expiry):
            raise ValidationError("Invalid token or token expired.")

    user.password = EncryptionDec().hash_password(text=data.password)
    user.reset_password_token = None
    user.reset_password_expiry = None
    user = protocol.primary(save_user, user=user)
    protocol.notify("User password was reset", NotificationType.EDIT, RelatedRef(RelatedModel.USER, user.id), created_by=user.id)
    logger.info(f"Reset Password for {user.email} done successfully")


def edit_user(
    protocol: MutationProtocol,
    user: User,
    data: UserEdit,
    storage: ObjectStorage,
    avatar: Optional[UploadedFile] = None,
) -> dict:
    """
    Update profile fields and, optionally, the avatar.

    The new avatar is stored before the user row is written and the old one
    is discarded afterwards, so ``image`` always names an existing object.
    """
    errors = data.collect_errors()
    if avatar is not None:
        errors.extend(avatar.errors())
    protocol.check(errors)
    with protocol.phase(Phase.VALIDATING):
        if data.telephone and data.telephone != user.telephone:
            other = fetch_user_by_telephone(telephone=data.telephone)
            if other is not None and other.id != user.id:
                raise ConflictError("Telephone already exists")

    previous_image = user.image
    with protocol.phase(Phase.MUTATING_PRIMARY):
        for field, value in data.changes().items():
            if value:
                setattr(user, field, value.lower() if field in ("fullname", "city", "country") else value)
        if avatar is not None:
            user.image = storage.store(avatar)
        try:
            user = save_user(user=user)
        except Exception:
            if avatar is not None:
                storage.discard(user.image)
            raise

    if avatar is not None and previous_image:
        protocol.dependents(storage.discard, ref=previous_image)
    protocol.notify(
        f"User {user.fullname} has been updated successfully",
        NotificationType.EDIT,
        RelatedRef(RelatedModel.USER, user.id),
    )
    return user.to_dict()
