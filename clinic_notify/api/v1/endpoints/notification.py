"""Notification endpoints for clinic staff."""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from clinic_notify.api.deps import get_current_clinic_id, get_db
from clinic_notify.config import settings
from clinic_notify.core.state_machine import NotificationStatus, ScheduleKind
from clinic_notify.schemas.notification import (
    CancelNotificationResponse,
    NotificationCreate,
    NotificationCreateResponse,
    NotificationListResponse,
    NotificationResponse,
    NotificationStatusUpdate,
    NotificationUpdate,
)
from clinic_notify.services.notification_service import notification_service

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
)


@router.post(
    "",
    response_model=NotificationCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create notification",
    description="""
    Create a notification for one of the clinic's patients.

    **schedule_kind:**
    - `scheduled` (default): queued with status `scheduled`. Push notifications
      require an active app install and consume one push credit.
    - `immediate`: recorded as `sent` right away; no credit is consumed.
    """,
    responses={
        201: {"description": "Notification created"},
        400: {"description": "Empty message, missing device/app, or insufficient balance"},
        401: {"description": "No clinic in session"},
        404: {"description": "Patient not found in this clinic"},
    },
)
def create_notification(
    payload: NotificationCreate,
    clinic_id: int = Depends(get_current_clinic_id),
    db: Session = Depends(get_db),
) -> NotificationCreateResponse:
    """Create a scheduled or immediate notification."""
    result = notification_service.create_notification(
        db,
        clinic_id=clinic_id,
        patient_id=payload.patient_id,
        message=payload.message,
        type=payload.type,
        category=payload.category,
        priority=payload.priority,
        delivery_method=payload.delivery_method,
        scheduled_date=payload.scheduled_date,
        kind=payload.schedule_kind,
    )

    scheduled = payload.schedule_kind == ScheduleKind.SCHEDULED
    return NotificationCreateResponse(
        message="Notification scheduled successfully" if scheduled else "Notification sent successfully",
        notification=NotificationResponse.from_model(result.notification),
        remaining_balance=result.remaining_balance,
    )


@router.get(
    "",
    response_model=NotificationListResponse,
    status_code=status.HTTP_200_OK,
    summary="List notifications",
    description="""
    List the clinic's notifications, newest scheduled date first.

    **Filters:** `status`, `patient_id`, `type`

    **Pagination:** `page` (1-based) and `limit` (max 100)
    """,
)
def list_notifications(
    status_filter: Optional[NotificationStatus] = Query(None, alias="status", description="Filter by status"),
    patient_id: Optional[int] = Query(None, gt=0, description="Filter by patient"),
    type: Optional[str] = Query(None, description="Filter by notification type"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Page size"),
    clinic_id: int = Depends(get_current_clinic_id),
    db: Session = Depends(get_db),
) -> NotificationListResponse:
    """List notifications for the current clinic."""
    notifications, total = notification_service.list_notifications(
        db,
        clinic_id=clinic_id,
        status=status_filter,
        patient_id=patient_id,
        type=type,
        page=page,
        limit=limit,
    )

    return NotificationListResponse(
        notifications=[NotificationResponse.from_model(n) for n in notifications],
        total=total,
        page=page,
        total_pages=(total + limit - 1) // limit,
        limit=limit,
    )


@router.get(
    "/{notification_id}",
    response_model=NotificationResponse,
    status_code=status.HTTP_200_OK,
    summary="Get notification",
    responses={404: {"description": "Notification not found in this clinic"}},
)
def get_notification(
    notification_id: int = Path(..., gt=0, description="Notification ID"),
    clinic_id: int = Depends(get_current_clinic_id),
    db: Session = Depends(get_db),
) -> NotificationResponse:
    notification = notification_service.get_notification(db, clinic_id=clinic_id, notification_id=notification_id)
    return NotificationResponse.from_model(notification)


@router.patch(
    "/{notification_id}/status",
    response_model=NotificationResponse,
    status_code=status.HTTP_200_OK,
    summary="Transition notification status",
    description="""
    Move a notification forward in its lifecycle:
    `scheduled → sent → delivered → read`, with `failed` reachable from
    `scheduled` or `sent`. The matching timestamp is set once.
    """,
    responses={
        404: {"description": "Notification not found in this clinic"},
        409: {"description": "Requested status is not reachable from the current one"},
    },
)
def transition_notification_status(
    payload: NotificationStatusUpdate,
    notification_id: int = Path(..., gt=0, description="Notification ID"),
    clinic_id: int = Depends(get_current_clinic_id),
    db: Session = Depends(get_db),
) -> NotificationResponse:
    """Transition a notification to a new status."""
    notification = notification_service.transition_status(
        db,
        clinic_id=clinic_id,
        notification_id=notification_id,
        status=payload.status,
        failure_reason=payload.failure_reason,
    )
    return NotificationResponse.from_model(notification)


@router.put(
    "/{notification_id}",
    response_model=NotificationResponse,
    status_code=status.HTTP_200_OK,
    summary="Edit scheduled notification",
    description="Change the message or scheduled date of a notification that has not been sent yet.",
    responses={
        400: {"description": "Empty message or notification no longer scheduled"},
        404: {"description": "Notification not found in this clinic"},
    },
)
def update_notification(
    payload: NotificationUpdate,
    notification_id: int = Path(..., gt=0, description="Notification ID"),
    clinic_id: int = Depends(get_current_clinic_id),
    db: Session = Depends(get_db),
) -> NotificationResponse:
    notification = notification_service.update_notification(
        db,
        clinic_id=clinic_id,
        notification_id=notification_id,
        message=payload.message,
        scheduled_date=payload.scheduled_date,
    )
    return NotificationResponse.from_model(notification)


@router.delete(
    "/{notification_id}",
    response_model=CancelNotificationResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel notification",
    description="Delete a notification that is still scheduled. Push notifications return their credit.",
    responses={
        400: {"description": "Only scheduled notifications can be deleted"},
        404: {"description": "Notification not found in this clinic"},
        500: {"description": "Database error occurred while deleting"},
    },
)
def cancel_notification(
    notification_id: int = Path(..., gt=0, description="Notification ID"),
    clinic_id: int = Depends(get_current_clinic_id),
    db: Session = Depends(get_db),
) -> CancelNotificationResponse:
    """Cancel a scheduled notification and refund its credit."""
    result = notification_service.cancel_notification(db, clinic_id=clinic_id, notification_id=notification_id)

    return CancelNotificationResponse(
        message="Notification deleted and balance refunded" if result.refunded else "Notification deleted",
        refunded=result.refunded,
        remaining_balance=result.remaining_balance,
    )
