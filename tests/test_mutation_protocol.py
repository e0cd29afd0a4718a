from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from crm_backend.api.errors import DependencyError, NotFoundError, ValidationError
from crm_backend.database.core.mutation import MutationProtocol, Phase, PhaseOrderError
from crm_backend.database.core.relationships import ReferenceUpdate
from crm_backend.database.daos.service_dao import ServiceDao
from crm_backend.database.entities.notification import NotificationType, RelatedModel, RelatedRef


def make_protocol(sink=None):
    return MutationProtocol("test.op", actor_id=uuid4(), sink=sink or MagicMock())


def test_check_batches_every_message():
    protocol = make_protocol()
    with pytest.raises(ValidationError) as exc:
        protocol.check(["Name is required", None, "Email is required"])
    assert exc.value.detail == "Name is required, Email is required"
    assert exc.value.status_code == 400


def test_phases_cannot_go_backwards():
    protocol = make_protocol()
    with protocol.phase(Phase.MUTATING_PRIMARY):
        pass
    with protocol.phase(Phase.MUTATING_PRIMARY):
        pass
    with pytest.raises(PhaseOrderError):
        with protocol.phase(Phase.AUTHORIZING):
            pass


def test_primary_error_propagates_and_nothing_else_runs():
    protocol = make_protocol()
    dependents = MagicMock()

    def failing_primary():
        raise NotFoundError("Lead not found")

    with pytest.raises(NotFoundError):
        protocol.sync(primary=failing_primary, dependents=dependents)
    dependents.assert_not_called()


def test_missing_parent_after_primary_is_a_dependency_error():
    protocol = make_protocol()
    with pytest.raises(DependencyError):
        protocol.sync(
            primary=lambda: "written",
            dependents=lambda value: [ReferenceUpdate(ServiceDao, uuid4(), push={"lead_ids": [uuid4()]})],
        )
    assert Phase.MUTATING_DEPENDENTS in protocol.timings


def test_notify_swallows_sink_failures():
    sink = MagicMock()
    sink.append.side_effect = RuntimeError("database is gone")
    protocol = make_protocol(sink)
    assert protocol.notify("Lead was created", NotificationType.CREATE, RelatedRef(RelatedModel.LEAD)) is None
    sink.append.assert_called_once()


def test_notify_without_actor_records_nothing():
    sink = MagicMock()
    protocol = MutationProtocol("test.op", sink=sink)
    assert protocol.notify("Lead was created", NotificationType.CREATE, RelatedRef(RelatedModel.LEAD)) is None
    sink.append.assert_not_called()


def test_respond_builds_envelope_and_defers_timing_log():
    protocol = make_protocol()
    response = protocol.respond(data={"id": 1}, message="Done", status_code=201)
    assert response.status_code == 201
    assert response.body == b'{"success":true,"data":{"id":1},"message":"Done"}'
    assert response.background is not None
    assert Phase.LOGGING not in protocol.timings
