"""Statistics schemas for notification dashboards and reports."""

from datetime import date, datetime
from typing import List

from pydantic import BaseModel, Field


class NotificationStatsResponse(BaseModel):
    """Point-in-time notification statistics for one clinic."""

    as_of: datetime

    # Scheduled pipeline
    scheduled_today: int = Field(..., description="Scheduled notifications due during the clinic's local today")
    pending_count: int = Field(..., description="All notifications still scheduled")
    upcoming_count: int = Field(..., description="Scheduled notifications due within the upcoming window")
    patients_with_pending_notifications: int

    # Per status
    sent_count: int
    delivered_count: int
    read_count: int
    failed_count: int
    total_notifications: int
    total_sent: int = Field(..., description="sent + delivered + read + failed")

    # Activity
    sent_today: int
    sent_this_week: int

    # Rates (integer percentages)
    delivery_success_rate: int
    engagement_rate: int
    failure_rate: int

    push_notification_balance: int


class TypeCount(BaseModel):
    type: str
    count: int


class CategoryCount(BaseModel):
    category: str
    count: int


class DailyCount(BaseModel):
    date: date
    count: int


class HourlyCount(BaseModel):
    hour: int
    count: int


class NotificationReportResponse(BaseModel):
    """Historical notification report for a date window."""

    start_date: date
    end_date: date
    total: int
    scheduled_count: int
    sent_count: int
    delivered_count: int
    read_count: int
    failed_count: int
    delivery_success_rate: int
    engagement_rate: int
    failure_rate: int
    by_type: List[TypeCount]
    by_category: List[CategoryCount]
    daily: List[DailyCount]
    hourly_trend: List[HourlyCount]
