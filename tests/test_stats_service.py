from datetime import date, datetime, timedelta

import pytest

from clinic_notify.config import settings
from clinic_notify.core.exceptions import ClinicNotFoundException, InvalidInputException
from clinic_notify.services.stats_service import compute_rates, percentage, stats_service

# Wednesday
AS_OF = datetime(2026, 10, 14, 10, 0)


def test_percentage_rounds_to_nearest():
    assert percentage(1, 8) == 13
    assert percentage(2, 3) == 67
    assert percentage(1, 3) == 33
    assert percentage(5, 5) == 100


def test_percentage_zero_denominator():
    assert percentage(0, 0) == 0
    assert percentage(3, 0) == 0


def test_rates_are_zero_guarded():
    rates = compute_rates({"scheduled": 4})

    assert rates == {
        "total_sent": 0,
        "delivery_success_rate": 0,
        "engagement_rate": 0,
        "failure_rate": 0,
    }


def test_engagement_zero_when_nothing_sits_in_delivered():
    rates = compute_rates({"read": 3, "sent": 1})

    assert rates["engagement_rate"] == 0
    assert rates["delivery_success_rate"] == 75


def test_empty_clinic_stats(db, clinic):
    stats = stats_service.get_stats(db, clinic_id=clinic.id, as_of=AS_OF)

    assert stats.total_notifications == 0
    assert stats.delivery_success_rate == 0
    assert stats.engagement_rate == 0
    assert stats.failure_rate == 0
    assert stats.push_notification_balance == 5


def test_status_counts_and_rates(db, clinic, patient, make_notification):
    make_notification(clinic, patient, status="scheduled")
    make_notification(clinic, patient, status="sent")
    make_notification(clinic, patient, status="delivered")
    make_notification(clinic, patient, status="delivered")
    make_notification(clinic, patient, status="read")
    make_notification(clinic, patient, status="failed", failure_reason="Token expired")

    stats = stats_service.get_stats(db, clinic_id=clinic.id, as_of=AS_OF)

    assert stats.sent_count == 1
    assert stats.delivered_count == 2
    assert stats.read_count == 1
    assert stats.failed_count == 1
    assert stats.pending_count == 1
    assert stats.total_notifications == 6
    assert stats.total_sent == 5
    assert stats.delivery_success_rate == 60
    assert stats.engagement_rate == 50
    assert stats.failure_rate == 20


def test_scheduled_windows(db, clinic, patient, patient_without_app, make_notification):
    make_notification(clinic, patient, scheduled_date=datetime(2026, 10, 14, 15, 0))  # today
    make_notification(clinic, patient, scheduled_date=datetime(2026, 10, 15, 9, 0))  # tomorrow
    make_notification(clinic, patient_without_app, scheduled_date=datetime(2026, 10, 20, 23, 59))  # day 6
    make_notification(clinic, patient, scheduled_date=datetime(2026, 10, 21, 0, 0))  # day 7, outside
    make_notification(clinic, patient, scheduled_date=datetime(2026, 10, 13, 9, 0))  # yesterday
    make_notification(clinic, patient, status="sent", scheduled_date=datetime(2026, 10, 14, 11, 0))

    stats = stats_service.get_stats(db, clinic_id=clinic.id, as_of=AS_OF)

    assert stats.scheduled_today == 1
    assert stats.upcoming_count == 3
    assert stats.pending_count == 5
    assert stats.patients_with_pending_notifications == 2


def test_sent_today_and_this_week(db, clinic, patient, make_notification):
    make_notification(clinic, patient, status="delivered", sent_at=datetime(2026, 10, 14, 8, 0))
    make_notification(clinic, patient, status="sent", sent_at=datetime(2026, 10, 12, 1, 0))  # Monday
    make_notification(clinic, patient, status="read", sent_at=datetime(2026, 10, 11, 23, 0))  # Sunday before

    stats = stats_service.get_stats(db, clinic_id=clinic.id, as_of=AS_OF)

    assert stats.sent_today == 1
    assert stats.sent_this_week == 2


def test_today_follows_clinic_timezone(db, clinic, patient, make_notification):
    clinic.timezone = "Asia/Kolkata"
    db.commit()
    # 2026-10-19 01:30 in Kolkata
    as_of = datetime(2026, 10, 18, 20, 0)
    make_notification(clinic, patient, scheduled_date=datetime(2026, 10, 18, 19, 0))  # 00:30 local on the 19th
    make_notification(clinic, patient, scheduled_date=datetime(2026, 10, 18, 12, 0))  # 17:30 local on the 18th

    stats = stats_service.get_stats(db, clinic_id=clinic.id, as_of=as_of)

    assert stats.scheduled_today == 1
    assert stats.pending_count == 2


def test_stats_ignore_other_clinics(db, clinic, other_clinic, patient, other_patient, make_notification):
    make_notification(clinic, patient, status="read")
    make_notification(other_clinic, other_patient, status="failed")
    make_notification(other_clinic, other_patient, status="scheduled", scheduled_date=datetime(2026, 10, 14, 12, 0))

    stats = stats_service.get_stats(db, clinic_id=clinic.id, as_of=AS_OF)

    assert stats.total_notifications == 1
    assert stats.failed_count == 0
    assert stats.scheduled_today == 0
    assert stats.failure_rate == 0


def test_stats_unknown_clinic(db):
    with pytest.raises(ClinicNotFoundException):
        stats_service.get_stats(db, clinic_id=404, as_of=AS_OF)


def test_report_breakdowns(db, clinic, other_clinic, patient, other_patient, make_notification):
    make_notification(clinic, patient, type="medicine", status="read", scheduled_date=datetime(2026, 10, 1, 9, 15))
    make_notification(clinic, patient, type="medicine", status="delivered", scheduled_date=datetime(2026, 10, 1, 18, 0))
    make_notification(
        clinic, patient, type="appointment", category="followup", status="failed",
        scheduled_date=datetime(2026, 10, 3, 9, 45),
    )
    make_notification(clinic, patient, type="review", scheduled_date=datetime(2026, 10, 4, 9, 0))  # outside
    make_notification(other_clinic, other_patient, scheduled_date=datetime(2026, 10, 2, 9, 0))

    report = stats_service.get_report(db, clinic_id=clinic.id, start_date=date(2026, 10, 1), end_date=date(2026, 10, 3))

    assert report.total == 3
    assert report.read_count == 1
    assert report.delivered_count == 1
    assert report.failed_count == 1
    assert report.delivery_success_rate == 67
    assert report.engagement_rate == 100
    assert report.failure_rate == 33
    assert {(t.type, t.count) for t in report.by_type} == {("medicine", 2), ("appointment", 1)}
    assert {(c.category, c.count) for c in report.by_category} == {("reminder", 2), ("followup", 1)}
    assert [(d.date.day, d.count) for d in report.daily] == [(1, 2), (2, 0), (3, 1)]
    assert len(report.hourly_trend) == 24
    assert report.hourly_trend[9].count == 2
    assert report.hourly_trend[18].count == 1


def test_report_rejects_inverted_window(db, clinic):
    with pytest.raises(InvalidInputException) as exc_info:
        stats_service.get_report(db, clinic_id=clinic.id, start_date=date(2026, 10, 5), end_date=date(2026, 10, 1))

    assert exc_info.value.status_code == 400


def test_report_rejects_window_longer_than_limit(db, clinic):
    with pytest.raises(InvalidInputException) as exc_info:
        stats_service.get_report(db, clinic_id=clinic.id, start_date=date(1, 1, 2), end_date=date(9999, 12, 30))

    assert "days" in exc_info.value.detail


def test_report_accepts_window_at_limit(db, clinic):
    end = date(2026, 10, 18)
    start = end - timedelta(days=settings.MAX_REPORT_DAYS - 1)

    report = stats_service.get_report(db, clinic_id=clinic.id, start_date=start, end_date=end)

    assert len(report.daily) == settings.MAX_REPORT_DAYS


def test_report_rejects_unrepresentable_end_date(db, clinic):
    with pytest.raises(InvalidInputException) as exc_info:
        stats_service.get_report(db, clinic_id=clinic.id, start_date=date.max - timedelta(days=1), end_date=date.max)

    assert exc_info.value.status_code == 400


def test_stats_rejects_unrepresentable_as_of(db, clinic):
    with pytest.raises(InvalidInputException):
        stats_service.get_stats(db, clinic_id=clinic.id, as_of=datetime.max)
