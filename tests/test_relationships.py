from uuid import uuid4

from crm_backend.database.core.relationships import (
    ReferenceUpdate,
    apply_reference_updates,
    move_reference,
    sync_relationship,
    unlink_references,
)
from crm_backend.database.core.services import fetch_service, insert_service
from crm_backend.database.daos.service_dao import ServiceDao
from crm_backend.database.entities.service import Service


def test_move_reference_between_parents():
    child, old, new = uuid4(), uuid4(), uuid4()
    updates = move_reference(ServiceDao, "lead_ids", child, old, new)
    assert [(u.parent_id, u.pull, u.push) for u in updates] == [
        (old, {"lead_ids": [child]}, {}),
        (new, {}, {"lead_ids": [child]}),
    ]
    assert move_reference(ServiceDao, "lead_ids", child, old, old) == []


def test_unlink_groups_children_per_parent():
    parent, a, b, c = uuid4(), uuid4(), uuid4(), uuid4()
    updates = unlink_references(ServiceDao, "lead_ids", [(parent, a), (None, b), (parent, c)])
    assert len(updates) == 1
    assert updates[0].pull == {"lead_ids": [a, c]}


def test_push_is_idempotent_and_pull_of_absent_id_is_a_noop():
    service = insert_service(service=Service(name="Web design", details="Sites for small businesses"))
    child = uuid4()
    result = apply_reference_updates(
        [
            ReferenceUpdate(ServiceDao, service.id, push={"lead_ids": [child]}),
            ReferenceUpdate(ServiceDao, service.id, push={"lead_ids": [child]}, pull={"client_ids": [uuid4()]}),
        ]
    )
    assert result.dependent_ok
    assert fetch_service(service_id=service.id).lead_ids == [str(child)]


def test_sync_attempts_every_update_and_reports_failures():
    service = insert_service(service=Service(name="Web design", details="Sites for small businesses"))
    child = uuid4()
    value, result = sync_relationship(
        primary=lambda: "primary",
        dependents=lambda value: [
            ReferenceUpdate(ServiceDao, uuid4(), push={"lead_ids": [child]}),
            ReferenceUpdate(ServiceDao, service.id, push={"lead_ids": [child]}),
        ],
    )
    assert value == "primary"
    assert result.primary_ok and not result.dependent_ok
    assert len(result.errors) == 1
    assert fetch_service(service_id=service.id).lead_ids == [str(child)]


def test_sync_skips_dependents_when_primary_fails():
    def primary():
        raise RuntimeError("insert failed")

    value, result = sync_relationship(primary=primary, dependents=lambda value: [])
    assert value is None
    assert not result.primary_ok and not result.dependent_ok
    assert isinstance(result.primary_error, RuntimeError)
