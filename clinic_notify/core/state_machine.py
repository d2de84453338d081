"""Notification status state machine.

A notification starts in ``scheduled`` and only ever moves forward::

    scheduled -> sent -> delivered -> read
    scheduled -> failed
    sent      -> failed

Each forward move stamps the matching timestamp exactly once.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional


class NotificationStatus(str, Enum):
    SCHEDULED = "scheduled"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"


class ScheduleKind(str, Enum):
    """How a new notification enters the lifecycle."""

    IMMEDIATE = "immediate"
    SCHEDULED = "scheduled"


ALLOWED_TRANSITIONS: Dict[NotificationStatus, FrozenSet[NotificationStatus]] = {
    NotificationStatus.SCHEDULED: frozenset({NotificationStatus.SENT, NotificationStatus.FAILED}),
    NotificationStatus.SENT: frozenset({NotificationStatus.DELIVERED, NotificationStatus.FAILED}),
    NotificationStatus.DELIVERED: frozenset({NotificationStatus.READ}),
    NotificationStatus.READ: frozenset(),
    NotificationStatus.FAILED: frozenset(),
}

# status -> attribute stamped when entering it
TIMESTAMP_FIELDS: Dict[NotificationStatus, str] = {
    NotificationStatus.SENT: "sent_at",
    NotificationStatus.DELIVERED: "delivered_at",
    NotificationStatus.READ: "read_at",
}


def can_transition(current: NotificationStatus, target: NotificationStatus) -> bool:
    """Return True if ``target`` is reachable from ``current`` in one step.

    Re-entering the current state is accepted as a no-op.
    """
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS[current]


def apply_transition(
    notification,
    target: NotificationStatus,
    *,
    now: datetime,
    failure_reason: Optional[str] = None,
) -> bool:
    """Write ``target`` onto ``notification`` and stamp its timestamp.

    The caller is responsible for checking :func:`can_transition` first.
    Re-entering the current status changes nothing, including the failure
    reason. Returns True if anything on the object changed.
    """
    if notification.status == target.value:
        return False

    notification.status = target.value

    field = TIMESTAMP_FIELDS.get(target)
    if field and getattr(notification, field) is None:
        setattr(notification, field, now)

    if target == NotificationStatus.FAILED and failure_reason:
        notification.failure_reason = failure_reason

    return True
