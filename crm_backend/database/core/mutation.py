"""
Mutation protocol
=================

Every create / edit / delete request runs the same ordered sequence of
phases::

    VALIDATING -> AUTHORIZING -> MUTATING_PRIMARY -> MUTATING_DEPENDENTS
        -> PERSISTING_NOTIFICATION -> RESPONDING -> LOGGING

A :class:`MutationProtocol` instance tracks one request through them:

- ``check`` batches every validation message into one ``ValidationError``.
- Authorization runs after the target is loaded and before any write.
- ``sync`` commits the primary write, then the dependent writes. A dependent
  failure after a committed primary write is a ``DependencyError``; the
  primary write is not undone.
- ``notify`` appends to the notification feed. Failures are logged at
  WARNING and never reach the caller.
- ``respond`` builds the single success envelope; the phase timings are
  logged by a background task once the response has been sent.

Entering an earlier phase than the current one raises ``PhaseOrderError``.
"""

import enum
import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Optional, TypeVar
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.background import BackgroundTask

from crm_backend.api.errors import DependencyError, ValidationError
from crm_backend.database.core.notifications import NotificationSink
from crm_backend.database.core.relationships import ReferenceUpdate, SyncResult, sync_relationship
from crm_backend.database.entities.notification import NotificationType, RelatedRef

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Phase(enum.IntEnum):
    VALIDATING = 1
    AUTHORIZING = 2
    MUTATING_PRIMARY = 3
    MUTATING_DEPENDENTS = 4
    PERSISTING_NOTIFICATION = 5
    RESPONDING = 6
    LOGGING = 7


class PhaseOrderError(RuntimeError):
    """A protocol run tried to go back to an earlier phase."""


_default_sink: Optional[NotificationSink] = None


def get_default_sink() -> NotificationSink:
    global _default_sink
    if _default_sink is None:
        _default_sink = NotificationSink()
    return _default_sink


class MutationProtocol:
    """
    State of one mutating request.

    Parameters
    ----------
    name : str
        Operation name used in log lines, e.g. ``"lead.new"``.
    actor_id : UUID | None
        Authenticated user; recorded as ``created_by`` on notifications.
    sink : NotificationSink | None
        Notification writer, shared process-wide by default.
    """

    def __init__(self, name: str, actor_id: Optional[UUID] = None, sink: Optional[NotificationSink] = None):
        self.name = name
        self.actor_id = actor_id
        self.sink = sink or get_default_sink()
        self.current: Optional[Phase] = None
        self.timings: Dict[Phase, float] = {}

    @contextmanager
    def phase(self, phase: Phase):
        if self.current is not None and phase < self.current:
            raise PhaseOrderError(f"{self.name}: cannot enter {phase.name} after {self.current.name}")
        self.current = phase
        started = time.perf_counter()
        try:
            yield self
        finally:
            self.timings[phase] = self.timings.get(phase, 0.0) + time.perf_counter() - started

    def check(self, errors: Iterable[str]) -> None:
        """Raise one ``ValidationError`` carrying every message in ``errors``."""
        with self.phase(Phase.VALIDATING):
            messages = [message for message in errors if message]
            if messages:
                logger.warning(f"{self.name}: validation failed: {', '.join(messages)}")
                raise ValidationError(messages)

    def primary(self, write: Callable[..., T], **kwargs) -> T:
        """Run and commit the primary write."""
        with self.phase(Phase.MUTATING_PRIMARY):
            return write(**kwargs)

    def sync(
        self,
        primary: Callable[[], T],
        dependents: Callable[[T], Iterable[ReferenceUpdate]],
    ) -> T:
        """
        Primary write followed by reference-array updates.

        Raises
        ------
        Exception
            Whatever the primary write raised; nothing else was written.
        DependencyError
            The primary write committed but a reference update failed.
        """
        value, result = sync_relationship(
            self._timed(Phase.MUTATING_PRIMARY, primary),
            self._timed(Phase.MUTATING_DEPENDENTS, dependents),
        )
        if not result.primary_ok:
            raise result.primary_error
        self.require(result)
        return value

    def _timed(self, phase: Phase, func: Callable) -> Callable:
        def run(*args):
            with self.phase(phase):
                return func(*args)
        return run

    def dependents(self, step: Callable[..., Any], **kwargs) -> Any:
        """Run a dependent write outside a relationship sync (e.g. a bucket call)."""
        with self.phase(Phase.MUTATING_DEPENDENTS):
            return step(**kwargs)

    def require(self, result: SyncResult) -> None:
        if not result.dependent_ok:
            message = f"{self.name}: primary write committed but dependent updates failed: {'; '.join(result.errors)}"
            logger.error(message)
            raise DependencyError(message)

    def notify(
        self,
        details: str,
        type: NotificationType,
        related: RelatedRef,
        created_by: Optional[UUID] = None,
    ) -> Optional[UUID]:
        """
        Append one notification; any failure is logged and swallowed.

        Returns
        -------
        UUID | None
            The notification id, or None when nothing was written.
        """
        with self.phase(Phase.PERSISTING_NOTIFICATION):
            actor = created_by or self.actor_id
            if actor is None:
                logger.warning(f"{self.name}: no actor, notification '{details}' not recorded")
                return None
            try:
                return self.sink.append(details=details, type=type, related=related, created_by=actor)
            except Exception as e:
                logger.warning(f"{self.name}: notification '{details}' was not recorded: {e}")
                return None

    def respond(
        self,
        data: Any = None,
        message: Optional[str] = None,
        status_code: int = 200,
        count: Optional[int] = None,
    ) -> JSONResponse:
        """Build the success envelope; timings are logged after it is sent."""
        with self.phase(Phase.RESPONDING):
            response = respond(data=data, message=message, status_code=status_code, count=count)
            response.background = BackgroundTask(self.log_timings)
            return response

    def log_timings(self) -> None:
        with self.phase(Phase.LOGGING):
            parts = [f"{phase.name.lower()}={seconds * 1000:.1f}ms" for phase, seconds in sorted(self.timings.items())]
            logger.info(f"{self.name}: {', '.join(parts)}")


def respond(data: Any = None, message: Optional[str] = None, status_code: int = 200, count: Optional[int] = None) -> JSONResponse:
    """Success envelope for reads, which do not run the mutation protocol."""
    content: Dict[str, Any] = {"success": True}
    if data is not None:
        content["data"] = jsonable_encoder(data)
    if message:
        content["message"] = message
    if count is not None:
        content["count"] = count
    return JSONResponse(status_code=status_code, content=content)
