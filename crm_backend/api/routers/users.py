"""
Users router: registration, login, account activation, password reset and
profile.

Tokens are returned in the response body as ``"Bearer <jwt>"``; clients send
them back in the ``Authorization`` header.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from crm_backend.api.models import NewPassword, UserCredentials, UserData, UserEdit, UserEmail, VerifCode
from crm_backend.api.utils import create_access_token, get_current_user, get_owner, get_storage
from crm_backend.database.core import users
from crm_backend.database.core.mutation import MutationProtocol, respond
from crm_backend.database.entities.user import User
from crm_backend.storage.lifecycle import ObjectStorage, UploadedFile

router = APIRouter()


@router.post("/register")
def register(data: UserData):
    """Create an account and email its activation code.

    Response:
        201: {success, data: {user, token}, message}
    """
    protocol = MutationProtocol("user.register")
    result = users.register_user(protocol, data, create_access_token)
    return protocol.respond(data=result, message="User registered successfully", status_code=201)


@router.post("/login")
def login(data: UserCredentials):
    """Exchange email and password for a bearer token."""
    token = users.login_user(data, create_access_token)
    return respond(data={"token": token}, message="Logged in successfully")


@router.post("/verify")
def verify(data: VerifCode):
    """Confirm the emailed activation code."""
    protocol = MutationProtocol("user.verify")
    token = users.verify_code(protocol, data, create_access_token)
    return protocol.respond(data={"token": token}, message="Account verified successfully")


@router.post("/resend-code")
def resend_code(data: UserEmail):
    protocol = MutationProtocol("user.resend_code")
    users.resend_code(protocol, data)
    return protocol.respond(message="Verification code sent")


@router.post("/forgot-password")
def forgot_password(data: UserEmail):
    protocol = MutationProtocol("user.forgot_password")
    message = users.forgot_password(protocol, data)
    return protocol.respond(message=message)


@router.put("/reset-password/{token}")
def reset_password(token: str, data: NewPassword):
    protocol = MutationProtocol("user.reset_password")
    users.reset_password(protocol, token, data)
    return protocol.respond(message="Password reset successfully")


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return respond(data=user.to_dict())


@router.put("/{owner_id}/edit")
def edit(
    fullname: Optional[str] = Form(None),
    role: Optional[str] = Form(None),
    country: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    telephone: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    user: User = Depends(get_owner),
    storage: ObjectStorage = Depends(get_storage),
):
    """Update profile fields (multipart form) and, optionally, the avatar."""
    sent = {"fullname": fullname, "role": role, "country": country, "city": city, "telephone": telephone}
    data = UserEdit(**{field: value for field, value in sent.items() if value is not None})
    uploaded = UploadedFile.from_upload(avatar) if avatar is not None else None
    protocol = MutationProtocol("user.edit", actor_id=user.id)
    result = users.edit_user(protocol, user, data, storage, avatar=uploaded)
    return protocol.respond(data=result, message="User updated successfully")
