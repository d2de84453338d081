"""Statistics endpoints for notification dashboards."""

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clinic_notify.api.deps import get_current_clinic_id, get_db
from clinic_notify.schemas.statistics import NotificationReportResponse, NotificationStatsResponse
from clinic_notify.services.stats_service import stats_service

router = APIRouter(prefix="/statistics", tags=["Statistics"])


@router.get(
    "/notifications",
    response_model=NotificationStatsResponse,
    summary="Get Notification Statistics",
    description="Point-in-time notification counts, delivery/engagement/failure rates and remaining push balance for the current clinic.",
)
def get_notification_statistics(
    as_of: Optional[datetime] = Query(None, description="Evaluate 'today' and 'this week' at this instant"),
    clinic_id: int = Depends(get_current_clinic_id),
    db: Session = Depends(get_db),
) -> NotificationStatsResponse:
    """
    Get notification statistics including:
    - Scheduled today, pending and upcoming counts
    - Counts per status
    - Delivery success, engagement and failure rates
    """
    return stats_service.get_stats(db, clinic_id=clinic_id, as_of=as_of)


@router.get(
    "/notifications/report",
    response_model=NotificationReportResponse,
    summary="Get Notification Report",
    description="Historical breakdown of notifications scheduled between two dates (inclusive, clinic local time).",
)
def get_notification_report(
    start_date: date = Query(..., description="First day of the report"),
    end_date: date = Query(..., description="Last day of the report"),
    clinic_id: int = Depends(get_current_clinic_id),
    db: Session = Depends(get_db),
) -> NotificationReportResponse:
    return stats_service.get_report(db, clinic_id=clinic_id, start_date=start_date, end_date=end_date)
