from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from crm_backend.database.core.notifications import NotificationSink, fetch_all_notifications
from crm_backend.database.core.retention import RetentionPolicy
from crm_backend.database.daos.notification_dao import NotificationDao
from crm_backend.database.entities.notification import Notification, NotificationType, RelatedModel, RelatedRef
from crm_backend.database.helpers.transactionManagement import transactional


def test_policy_sweeps_at_the_ceiling():
    policy = RetentionPolicy(ceiling=3, retention_days=7)
    assert not policy.should_sweep(2)
    assert policy.should_sweep(3)
    assert policy.should_sweep(10)


def test_policy_cutoff():
    now = datetime(2026, 1, 31, tzinfo=timezone.utc)
    assert RetentionPolicy(ceiling=1, retention_days=30).cutoff(now) == datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize("ceiling, days", [(0, 1), (5, -1)])
def test_policy_rejects_nonsense(ceiling, days):
    with pytest.raises(ValueError):
        RetentionPolicy(ceiling=ceiling, retention_days=days)


@transactional
def _seed(session, user_id, ages):
    now = datetime.now(timezone.utc)
    for age in ages:
        NotificationDao().create(
            session,
            Notification(
                details=f"Seeded {age} days ago",
                type=NotificationType.CREATE,
                related=RelatedRef(RelatedModel.LEAD, uuid4()),
                created_by=user_id,
                created_at=now - timedelta(days=age),
            ),
        )


def test_sink_sweeps_old_rows_once_the_ceiling_is_reached(user):
    _seed(user_id=user.id, ages=[40, 35, 1])
    sink = NotificationSink(policy=RetentionPolicy(ceiling=3, retention_days=30))

    sink.append(details="Fresh notification", type=NotificationType.EDIT, related=RelatedRef(RelatedModel.LEAD), created_by=user.id)

    details = sorted(n.details for n in fetch_all_notifications())
    assert details == ["Fresh notification", "Seeded 1 days ago"]


def test_sink_keeps_everything_below_the_ceiling(user):
    _seed(user_id=user.id, ages=[40, 35])
    sink = NotificationSink(policy=RetentionPolicy(ceiling=5, retention_days=30))

    sink.append(details="Fresh notification", type=NotificationType.EDIT, related=RelatedRef(RelatedModel.LEAD), created_by=user.id)

    assert len(fetch_all_notifications()) == 3


def test_related_model_is_constrained():
    with pytest.raises(ValueError):
        RelatedRef("Invoice", uuid4())
