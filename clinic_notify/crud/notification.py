"""CRUD operations for `Notification` model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from clinic_notify.core.tenant import require_clinic_id
from clinic_notify.crud.base import ClinicScopedCRUD
from clinic_notify.models.notification import Notification


@dataclass
class NotificationFilter:
    """Optional conditions for scanning a clinic's notifications.

    Date bounds are half-open: ``*_from`` inclusive, ``*_before`` exclusive.
    """

    status: Optional[str] = None
    statuses: Optional[Sequence[str]] = None
    patient_id: Optional[int] = None
    type: Optional[str] = None
    scheduled_from: Optional[datetime] = None
    scheduled_before: Optional[datetime] = None
    sent_from: Optional[datetime] = None
    sent_before: Optional[datetime] = None

    def conditions(self) -> list:
        conditions = []
        if self.status is not None:
            conditions.append(Notification.status == self.status)
        if self.statuses is not None:
            conditions.append(Notification.status.in_(list(self.statuses)))
        if self.patient_id is not None:
            conditions.append(Notification.patient_id == self.patient_id)
        if self.type is not None:
            conditions.append(Notification.type == self.type)
        if self.scheduled_from is not None:
            conditions.append(Notification.scheduled_date >= self.scheduled_from)
        if self.scheduled_before is not None:
            conditions.append(Notification.scheduled_date < self.scheduled_before)
        if self.sent_from is not None:
            conditions.append(Notification.sent_at >= self.sent_from)
        if self.sent_before is not None:
            conditions.append(Notification.sent_at < self.sent_before)
        return conditions


class CRUDNotification(ClinicScopedCRUD[Notification]):
    def get_with_patient(self, db: Session, *, clinic_id: int, id: int) -> Optional[Notification]:
        """Point lookup that also loads the patient for display fields."""
        stmt = (
            self._scoped(clinic_id)
            .where(Notification.id == id)
            .options(joinedload(Notification.patient))
            .limit(1)
        )
        return db.scalars(stmt).first()

    def get_for_update(self, db: Session, *, clinic_id: int, id: int) -> Optional[Notification]:
        """Point lookup taking a row lock where the backend supports it."""
        stmt = self._scoped(clinic_id).where(Notification.id == id).with_for_update().limit(1)
        return db.scalars(stmt).first()

    def scan(
        self,
        db: Session,
        *,
        clinic_id: int,
        filters: Optional[NotificationFilter] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Notification]:
        """Filtered scan ordered by scheduled date, newest first."""
        stmt = self._scoped(clinic_id).options(joinedload(Notification.patient))
        if filters is not None:
            stmt = stmt.where(*filters.conditions())
        stmt = stmt.order_by(Notification.scheduled_date.desc(), Notification.id.desc()).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(db.scalars(stmt).unique().all())

    def count_filtered(
        self, db: Session, *, clinic_id: int, filters: Optional[NotificationFilter] = None
    ) -> int:
        stmt = select(func.count(Notification.id)).where(Notification.clinic_id == require_clinic_id(clinic_id))
        if filters is not None:
            stmt = stmt.where(*filters.conditions())
        return db.scalar(stmt) or 0

    def count_by_status(
        self, db: Session, *, clinic_id: int, filters: Optional[NotificationFilter] = None
    ) -> Dict[str, int]:
        """Return ``{status: count}`` for the clinic, omitting empty statuses."""
        stmt = (
            select(Notification.status, func.count(Notification.id))
            .where(Notification.clinic_id == require_clinic_id(clinic_id))
            .group_by(Notification.status)
        )
        if filters is not None:
            stmt = stmt.where(*filters.conditions())
        return {status: count for status, count in db.execute(stmt).all()}

    def count_distinct_patients(
        self, db: Session, *, clinic_id: int, filters: Optional[NotificationFilter] = None
    ) -> int:
        stmt = (
            select(func.count(func.distinct(Notification.patient_id)))
            .where(Notification.clinic_id == require_clinic_id(clinic_id))
        )
        if filters is not None:
            stmt = stmt.where(*filters.conditions())
        return db.scalar(stmt) or 0


# Singleton instance
crud_notification = CRUDNotification(Notification)
