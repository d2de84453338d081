"""Read-only notification statistics for clinic dashboards and reports."""

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_notify.config import settings
from clinic_notify.core.exceptions import ClinicNotFoundException, InvalidInputException, StoreFailureException
from clinic_notify.core.state_machine import NotificationStatus
from clinic_notify.core.tenant import require_clinic_id
from clinic_notify.crud import NotificationFilter, crud_notification
from clinic_notify.models.clinic import Clinic
from clinic_notify.models.notification import Notification
from clinic_notify.schemas.statistics import (
    CategoryCount,
    DailyCount,
    HourlyCount,
    NotificationReportResponse,
    NotificationStatsResponse,
    TypeCount,
)
from clinic_notify.utils.datetime_utils import (
    get_zone,
    local_date,
    local_day_bounds,
    local_hour,
    local_midnight_utc,
    to_naive_utc,
    utcnow,
)

logger = logging.getLogger(__name__)

SCHEDULED = NotificationStatus.SCHEDULED.value
SENT = NotificationStatus.SENT.value
DELIVERED = NotificationStatus.DELIVERED.value
READ = NotificationStatus.READ.value
FAILED = NotificationStatus.FAILED.value


def percentage(part: int, whole: int) -> int:
    """Integer percentage rounded half up; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return (100 * part + whole // 2) // whole


def compute_rates(counts: Dict[str, int]) -> Dict[str, int]:
    """Delivery, engagement and failure rates from per-status counts.

    ``delivered`` means notifications currently sitting in the delivered
    state; notifications that went on to ``read`` are counted as read only.
    """
    sent = counts.get(SENT, 0)
    delivered = counts.get(DELIVERED, 0)
    read = counts.get(READ, 0)
    failed = counts.get(FAILED, 0)
    total_sent = sent + delivered + read + failed
    return {
        "total_sent": total_sent,
        "delivery_success_rate": percentage(delivered + read, total_sent),
        "engagement_rate": percentage(read, delivered),
        "failure_rate": percentage(failed, total_sent),
    }


class NotificationStatsService:
    """
    Aggregation over the notification store.

    Never writes: every method only issues SELECTs scoped to one clinic.
    Calendar boundaries (today, this week) use the clinic's own timezone.
    """

    def _get_clinic(self, db: Session, clinic_id: int) -> Clinic:
        clinic = db.scalars(select(Clinic).where(Clinic.id == clinic_id)).first()
        if not clinic:
            raise ClinicNotFoundException()
        return clinic

    def get_stats(
        self,
        db: Session,
        *,
        clinic_id: int,
        as_of: Optional[datetime] = None,
    ) -> NotificationStatsResponse:
        """
        Point-in-time statistics for the clinic.

        Args:
            db: Database session
            clinic_id: Caller's clinic
            as_of: Instant to evaluate "today" and "this week" against (default now)

        Returns:
            NotificationStatsResponse: counts, rates and remaining balance
        """
        clinic_id = require_clinic_id(clinic_id)

        try:
            clinic = self._get_clinic(db, clinic_id)
            zone = get_zone(clinic.timezone)

            try:
                as_of = to_naive_utc(as_of) if as_of else utcnow()
                today = local_date(as_of, zone)
                today_start, tomorrow_start = local_day_bounds(today, zone)
                upcoming_end = local_midnight_utc(today + timedelta(days=settings.UPCOMING_WINDOW_DAYS), zone)
                week_start = local_midnight_utc(today - timedelta(days=today.weekday()), zone)
            except (OverflowError, ValueError):
                raise InvalidInputException("as_of is outside the supported date range")

            def count(**kwargs) -> int:
                return crud_notification.count_filtered(
                    db, clinic_id=clinic_id, filters=NotificationFilter(**kwargs)
                )

            by_status = crud_notification.count_by_status(db, clinic_id=clinic_id)
            scheduled_today = count(status=SCHEDULED, scheduled_from=today_start, scheduled_before=tomorrow_start)
            upcoming = count(status=SCHEDULED, scheduled_from=today_start, scheduled_before=upcoming_end)
            sent_today = count(sent_from=today_start, sent_before=tomorrow_start)
            sent_this_week = count(sent_from=week_start)
            patients_pending = crud_notification.count_distinct_patients(
                db, clinic_id=clinic_id, filters=NotificationFilter(status=SCHEDULED, scheduled_from=today_start)
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to compute notification stats: {str(e)}")
            raise StoreFailureException(f"Failed to compute notification stats: {str(e)}") from e

        rates = compute_rates(by_status)
        return NotificationStatsResponse(
            as_of=as_of,
            scheduled_today=scheduled_today,
            pending_count=by_status.get(SCHEDULED, 0),
            upcoming_count=upcoming,
            patients_with_pending_notifications=patients_pending,
            sent_count=by_status.get(SENT, 0),
            delivered_count=by_status.get(DELIVERED, 0),
            read_count=by_status.get(READ, 0),
            failed_count=by_status.get(FAILED, 0),
            total_notifications=sum(by_status.values()),
            total_sent=rates["total_sent"],
            sent_today=sent_today,
            sent_this_week=sent_this_week,
            delivery_success_rate=rates["delivery_success_rate"],
            engagement_rate=rates["engagement_rate"],
            failure_rate=rates["failure_rate"],
            push_notification_balance=clinic.push_notification_balance or 0,
        )

    def get_report(
        self,
        db: Session,
        *,
        clinic_id: int,
        start_date: date,
        end_date: date,
    ) -> NotificationReportResponse:
        """
        Historical report over notifications scheduled between two local dates (inclusive).

        Raises:
            InvalidInputException: If ``start_date`` is after ``end_date``,
                the window is longer than ``MAX_REPORT_DAYS`` or falls outside
                the representable date range
        """
        clinic_id = require_clinic_id(clinic_id)
        if start_date > end_date:
            raise InvalidInputException("Start date must be before end date")
        span = (end_date - start_date).days + 1
        if span > settings.MAX_REPORT_DAYS:
            raise InvalidInputException(f"Report window cannot exceed {settings.MAX_REPORT_DAYS} days")

        try:
            clinic = self._get_clinic(db, clinic_id)
            zone = get_zone(clinic.timezone)
            try:
                window_start = local_midnight_utc(start_date, zone)
                window_end = local_midnight_utc(end_date + timedelta(days=1), zone)
            except (OverflowError, ValueError):
                raise InvalidInputException("Report window is outside the supported date range")

            stmt = select(
                Notification.status,
                Notification.type,
                Notification.category,
                Notification.scheduled_date,
            ).where(
                Notification.clinic_id == clinic_id,
                Notification.scheduled_date >= window_start,
                Notification.scheduled_date < window_end,
            )
            rows = db.execute(stmt).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to build notification report: {str(e)}")
            raise StoreFailureException(f"Failed to build notification report: {str(e)}") from e

        statuses: Counter = Counter()
        types: Counter = Counter()
        categories: Counter = Counter()
        days: Counter = Counter()
        hours: Counter = Counter()
        for status, type_, category, scheduled_date in rows:
            statuses[status] += 1
            types[type_ or "unknown"] += 1
            categories[category or "reminder"] += 1
            days[local_date(scheduled_date, zone)] += 1
            hours[local_hour(scheduled_date, zone)] += 1

        rates = compute_rates(statuses)
        return NotificationReportResponse(
            start_date=start_date,
            end_date=end_date,
            total=len(rows),
            scheduled_count=statuses.get(SCHEDULED, 0),
            sent_count=statuses.get(SENT, 0),
            delivered_count=statuses.get(DELIVERED, 0),
            read_count=statuses.get(READ, 0),
            failed_count=statuses.get(FAILED, 0),
            delivery_success_rate=rates["delivery_success_rate"],
            engagement_rate=rates["engagement_rate"],
            failure_rate=rates["failure_rate"],
            by_type=[TypeCount(type=t, count=c) for t, c in sorted(types.items())],
            by_category=[CategoryCount(category=c, count=n) for c, n in sorted(categories.items())],
            daily=[
                DailyCount(date=start_date + timedelta(days=i), count=days.get(start_date + timedelta(days=i), 0))
                for i in range(span)
            ],
            hourly_trend=[HourlyCount(hour=h, count=hours.get(h, 0)) for h in range(24)],
        )


# Singleton instance
stats_service = NotificationStatsService()
