"""Notification lifecycle engine: creation, status transitions and cancellation."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_notify.config import settings
from clinic_notify.core.exceptions import (
    AppNotInstalledException,
    EmptyMessageException,
    InvalidInputException,
    InvalidTransitionException,
    NotCancellableException,
    NotEditableException,
    NotificationEngineException,
    NotificationNotFoundException,
    PatientNotFoundException,
    PatientOptedOutException,
    PushTokenMissingException,
    StoreFailureException,
)
from clinic_notify.core.state_machine import (
    NotificationStatus,
    ScheduleKind,
    apply_transition,
    can_transition,
)
from clinic_notify.core.tenant import require_clinic_id
from clinic_notify.crud import NotificationFilter, crud_notification, crud_patient
from clinic_notify.models.notification import Notification
from clinic_notify.services.balance_ledger import BalanceLedger, balance_ledger
from clinic_notify.services.device_directory import DeviceDirectory, device_directory
from clinic_notify.utils.datetime_utils import to_naive_utc, utcnow

logger = logging.getLogger(__name__)

PUSH = "push"


@dataclass
class CreateResult:
    notification: Notification
    credit_consumed: bool
    remaining_balance: int


@dataclass
class CancelResult:
    notification_id: int
    refunded: bool
    remaining_balance: int


def consumes_credit(kind: ScheduleKind, delivery_method: str) -> bool:
    """A credit is charged only for push notifications queued for later delivery."""
    return kind == ScheduleKind.SCHEDULED and delivery_method == PUSH


class NotificationService:
    """
    Lifecycle engine for clinic notifications.

    Holds no per-request state; every method takes the database session and
    the caller's ``clinic_id`` explicitly. Each mutating method is one unit of
    work: it either commits all of its writes (notification row and balance)
    or rolls all of them back.
    """

    def __init__(
        self,
        ledger: Optional[BalanceLedger] = None,
        directory: Optional[DeviceDirectory] = None,
    ):
        self.ledger = ledger or balance_ledger
        self.directory = directory or device_directory

    # ----- Create -----
    def create_notification(
        self,
        db: Session,
        *,
        clinic_id: int,
        patient_id: int,
        message: str,
        type: str = "reminder",
        category: str = "reminder",
        priority: str = "normal",
        delivery_method: str = PUSH,
        scheduled_date: Optional[datetime] = None,
        kind: ScheduleKind = ScheduleKind.SCHEDULED,
        now: Optional[datetime] = None,
    ) -> CreateResult:
        """
        Create a notification for one of the clinic's patients.

        Preconditions are checked in order and the first failure wins:
        patient ownership, non-empty message, push opt-out and push device
        (push only), then for scheduled push notifications an active app
        install and a positive balance.

        Args:
            db: Database session
            clinic_id: Caller's clinic
            patient_id: Target patient, must belong to ``clinic_id``
            message: Text payload, stored trimmed
            type: Notification type (appointment, medicine, reminder, ...)
            category: Free classification used by reports
            priority: low, normal, high, urgent
            delivery_method: push, sms, whatsapp, in_app
            scheduled_date: Intended delivery time, defaults to now
            kind: ``scheduled`` queues the notification, ``immediate`` records it as sent
            now: Clock override

        Returns:
            CreateResult: The notification, whether a credit was charged and the balance after

        Raises:
            PatientNotFoundException, EmptyMessageException, PatientOptedOutException,
            PushTokenMissingException, AppNotInstalledException,
            InsufficientBalanceException, StoreFailureException
        """
        clinic_id = require_clinic_id(clinic_id)
        now = now or utcnow()

        patient = crud_patient.get(db, clinic_id=clinic_id, id=patient_id)
        if not patient:
            logger.warning(f"Patient not found: id={patient_id}, clinic_id={clinic_id}")
            raise PatientNotFoundException()

        text = (message or "").strip()
        if not text:
            raise EmptyMessageException()

        if delivery_method == PUSH and patient.opt_out:
            logger.warning(f"Patient opted out of push: id={patient_id}, clinic_id={clinic_id}")
            raise PatientOptedOutException()

        if delivery_method == PUSH and not self.directory.has_push_capability(db, patient):
            logger.warning(f"Patient has no push token: id={patient_id}, clinic_id={clinic_id}")
            raise PushTokenMissingException()

        charge = consumes_credit(kind, delivery_method)
        if charge and not self.directory.has_active_app_install(db, patient):
            logger.warning(f"Patient has no active app install: id={patient_id}, clinic_id={clinic_id}")
            raise AppNotInstalledException()

        data = {
            "patient_id": patient.id,
            "message": text,
            "type": type,
            "category": category,
            "priority": priority,
            "delivery_method": delivery_method,
            "scheduled_date": to_naive_utc(scheduled_date) if scheduled_date else now,
            "status": NotificationStatus.SCHEDULED.value,
        }
        if kind == ScheduleKind.IMMEDIATE:
            data["status"] = NotificationStatus.SENT.value
            data["sent_at"] = now

        try:
            if charge:
                self.ledger.consume(db, clinic_id=clinic_id)
            notification = crud_notification.create(db, clinic_id=clinic_id, obj_in=data, commit=False)
            db.commit()
            db.refresh(notification)
            remaining = self.ledger.get_balance(db, clinic_id=clinic_id)
        except NotificationEngineException:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create notification: {str(e)}")
            raise StoreFailureException(f"Failed to create notification: {str(e)}") from e

        logger.info(
            f"Notification created: id={notification.id}, clinic_id={clinic_id}, "
            f"patient_id={patient.id}, status={notification.status}, "
            f"credit_consumed={charge}, remaining_balance={remaining}"
        )
        return CreateResult(notification=notification, credit_consumed=charge, remaining_balance=remaining)

    # ----- Transition -----
    def transition_status(
        self,
        db: Session,
        *,
        clinic_id: int,
        notification_id: int,
        status: NotificationStatus,
        failure_reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Notification:
        """
        Move a notification to ``status``, stamping its timestamp once.

        Re-entering the current status is a no-op and never overwrites an
        existing timestamp. Balance is never touched here.

        Raises:
            NotificationNotFoundException: If the notification is not the clinic's
            InvalidInputException: If ``status`` is not a known status
            InvalidTransitionException: If ``status`` is not reachable
            StoreFailureException: If the update fails
        """
        clinic_id = require_clinic_id(clinic_id)
        try:
            target = NotificationStatus(status)
        except ValueError:
            raise InvalidInputException(f"Unknown notification status: {status!r}")
        now = now or utcnow()

        try:
            notification = crud_notification.get_for_update(db, clinic_id=clinic_id, id=notification_id)
            if not notification:
                raise NotificationNotFoundException()

            current = NotificationStatus(notification.status)
            if not can_transition(current, target):
                logger.warning(
                    f"Rejected transition: id={notification_id}, clinic_id={clinic_id}, "
                    f"{current.value} -> {target.value}"
                )
                raise InvalidTransitionException(current.value, target.value)

            reason = failure_reason.strip() if failure_reason else None
            changed = apply_transition(notification, target, now=now, failure_reason=reason)
            if changed:
                db.add(notification)
                db.commit()
                db.refresh(notification)
            else:
                db.rollback()
        except NotificationEngineException:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to update notification status: {str(e)}")
            raise StoreFailureException(f"Failed to update notification status: {str(e)}") from e

        if changed:
            logger.info(
                f"Notification status changed: id={notification_id}, clinic_id={clinic_id}, "
                f"{current.value} -> {target.value}"
            )
        return self.get_notification(db, clinic_id=clinic_id, notification_id=notification_id)

    # ----- Edit -----
    def update_notification(
        self,
        db: Session,
        *,
        clinic_id: int,
        notification_id: int,
        message: Optional[str] = None,
        scheduled_date: Optional[datetime] = None,
    ) -> Notification:
        """Edit message and/or scheduled date while the notification is still scheduled."""
        clinic_id = require_clinic_id(clinic_id)

        changes = {}
        if message is not None:
            text = message.strip()
            if not text:
                raise EmptyMessageException()
            changes["message"] = text
        if scheduled_date is not None:
            changes["scheduled_date"] = to_naive_utc(scheduled_date)

        try:
            notification = crud_notification.get_for_update(db, clinic_id=clinic_id, id=notification_id)
            if not notification:
                raise NotificationNotFoundException()
            if notification.status != NotificationStatus.SCHEDULED.value:
                raise NotEditableException()
            if changes:
                crud_notification.update(db, db_obj=notification, obj_in=changes, commit=False)
                db.commit()
            else:
                db.rollback()
        except NotificationEngineException:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to update notification: {str(e)}")
            raise StoreFailureException(f"Failed to update notification: {str(e)}") from e

        logger.info(f"Notification updated: id={notification_id}, clinic_id={clinic_id}, fields={sorted(changes)}")
        return self.get_notification(db, clinic_id=clinic_id, notification_id=notification_id)

    # ----- Cancel -----
    def cancel_notification(
        self,
        db: Session,
        *,
        clinic_id: int,
        notification_id: int,
    ) -> CancelResult:
        """
        Delete a still-scheduled notification and refund its credit.

        The refund mirrors creation: only push notifications return a credit,
        since only scheduled push notifications were charged one.

        Raises:
            NotificationNotFoundException: If the notification is not the clinic's
            NotCancellableException: If it has already left ``scheduled``
            StoreFailureException: If the delete or refund fails
        """
        clinic_id = require_clinic_id(clinic_id)

        try:
            notification = crud_notification.get_for_update(db, clinic_id=clinic_id, id=notification_id)
            if not notification:
                raise NotificationNotFoundException()
            if notification.status != NotificationStatus.SCHEDULED.value:
                raise NotCancellableException()

            refund = notification.delivery_method == PUSH
            crud_notification.delete(db, clinic_id=clinic_id, id=notification_id, commit=False)
            if refund:
                self.ledger.refund(db, clinic_id=clinic_id)
            db.commit()
            remaining = self.ledger.get_balance(db, clinic_id=clinic_id)
        except NotificationEngineException:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to delete notification: {str(e)}")
            raise StoreFailureException(f"Failed to delete notification: {str(e)}") from e

        logger.info(
            f"Notification cancelled: id={notification_id}, clinic_id={clinic_id}, "
            f"refunded={refund}, remaining_balance={remaining}"
        )
        return CancelResult(notification_id=notification_id, refunded=refund, remaining_balance=remaining)

    # ----- Read -----
    def get_notification(self, db: Session, *, clinic_id: int, notification_id: int) -> Notification:
        """Point lookup. Another clinic's notification is reported as not found."""
        notification = crud_notification.get_with_patient(
            db, clinic_id=require_clinic_id(clinic_id), id=notification_id
        )
        if not notification:
            raise NotificationNotFoundException()
        return notification

    def list_notifications(
        self,
        db: Session,
        *,
        clinic_id: int,
        status: Optional[NotificationStatus] = None,
        patient_id: Optional[int] = None,
        type: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Tuple[List[Notification], int]:
        """
        Page through the clinic's notifications, newest scheduled date first.

        Returns:
            (notifications, total) where ``total`` counts every match
        """
        clinic_id = require_clinic_id(clinic_id)
        limit = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
        page = max(page, 1)

        filters = NotificationFilter(
            status=NotificationStatus(status).value if status is not None else None,
            patient_id=patient_id,
            type=type,
        )
        try:
            notifications = crud_notification.scan(
                db, clinic_id=clinic_id, filters=filters, skip=(page - 1) * limit, limit=limit
            )
            total = crud_notification.count_filtered(db, clinic_id=clinic_id, filters=filters)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list notifications: {str(e)}")
            raise StoreFailureException(f"Failed to list notifications: {str(e)}") from e
        return notifications, total


# Singleton instance
notification_service = NotificationService()
