"""
Notification retention policy.

The notification table is swept opportunistically: no scheduler runs, the
sink consults the policy on every insert. Once the row count reaches
``ceiling``, every row older than ``retention_days`` is deleted before the
new row goes in.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from crm_backend.database.config.config import settings


@dataclass(frozen=True)
class RetentionPolicy:
    ceiling: int
    retention_days: int

    def __post_init__(self):
        if self.ceiling < 1:
            raise ValueError("Retention ceiling must be a positive number of rows")
        if self.retention_days < 0:
            raise ValueError("Retention window cannot be negative")

    @classmethod
    def from_settings(cls) -> "RetentionPolicy":
        return cls(
            ceiling=settings.MAX_NOTIFICATIONS_BEFORE_CLEANUP,
            retention_days=settings.NOTIFICATION_RETENTION_DAYS,
        )

    def should_sweep(self, count: int) -> bool:
        return count >= self.ceiling

    def cutoff(self, now: Optional[datetime] = None) -> datetime:
        """Rows created strictly before this instant are swept."""
        now = now or datetime.now(timezone.utc)
        return now - timedelta(days=self.retention_days)
