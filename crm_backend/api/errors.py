"""
Error Taxonomy & Terminal Translator
====================================

Every failure a request can end in is one of the exception classes below.
Service-layer code raises them; ``register_exception_handlers`` installs the
single translator that turns them (and the datastore / framework errors that
have an equivalent) into the error envelope::

    {"success": false, "error": <str | list[str]>}

Mapping
-------
- ValidationError      400  batched field messages, joined with ", "
- ConflictError        400  duplicate unique field, stale version
- AuthenticationError  401  missing / malformed / expired / forged token
- AuthorizationError   403  authenticated but not permitted
- NotFoundError        404
- ObjectNotFoundError  404  bucket object absent (a StorageError)
- StorageError         500  bucket operation failed
- DependencyError      500  a write after the committed primary write failed

A DependencyError is reported as a failure of the whole request even though
the primary mutation was committed; nothing is compensated.
"""

import logging
from typing import Iterable, List, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class CRMError(Exception):
    """Base class of every error the API reports to the client."""

    status_code = 500

    def __init__(self, detail: Union[str, List[str]] = "Server Error"):
        super().__init__(detail)
        self.detail = detail


class ValidationError(CRMError):
    """One or more request fields are missing or malformed."""

    status_code = 400

    def __init__(self, messages: Union[str, Iterable[str]]):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__(", ".join(self.messages))


class NotFoundError(CRMError):
    status_code = 404


class AuthenticationError(CRMError):
    status_code = 401


class AuthorizationError(CRMError):
    status_code = 403


class ConflictError(CRMError):
    status_code = 400


class StorageError(CRMError):
    status_code = 500


class ObjectNotFoundError(StorageError):
    """The referenced object does not exist in the bucket."""

    status_code = 404


class DependencyError(CRMError):
    """A dependent write failed after the primary write was committed."""

    status_code = 500


def error_response(status_code: int, error) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def _request_validation_messages(exc: RequestValidationError) -> List[str]:
    messages = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
        field = ".".join(location)
        messages.append(f"{field}: {error.get('msg')}" if field else error.get("msg"))
    return messages


def register_exception_handlers(app: FastAPI) -> None:
    """Install the terminal translator on ``app``."""

    @app.exception_handler(CRMError)
    async def crm_error_handler(request: Request, exc: CRMError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
        return error_response(exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        messages = _request_validation_messages(exc)
        logger.warning(f"Validation error on {request.url.path}: {', '.join(messages)}")
        return error_response(400, ", ".join(messages))

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
        return error_response(400, "Duplicate field value entered. Please use another value.")

    @app.exception_handler(StaleDataError)
    async def stale_data_handler(request: Request, exc: StaleDataError):
        logger.warning(f"Concurrent modification on {request.url.path}: {exc}")
        return error_response(400, "The document was modified by another request, please reload and retry.")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, exc.detail)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unexpected error on {request.method} {request.url.path}")
        return error_response(500, "Server Error")
