"""Pydantic schemas for `Notification` domain objects."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from clinic_notify.core.state_machine import NotificationStatus, ScheduleKind
from clinic_notify.models.notification import DELIVERY_METHODS, NOTIFICATION_TYPES, PRIORITIES


class NotificationCreate(BaseModel):
    patient_id: int
    message: str
    type: str = "reminder"
    category: str = "reminder"
    priority: str = "normal"
    delivery_method: str = "push"
    scheduled_date: Optional[datetime] = None
    schedule_kind: ScheduleKind = ScheduleKind.SCHEDULED

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in NOTIFICATION_TYPES:
            raise ValueError(f"Notification type must be one of {sorted(NOTIFICATION_TYPES)}")
        return v

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: str) -> str:
        if v not in PRIORITIES:
            raise ValueError(f"Priority must be one of {sorted(PRIORITIES)}")
        return v

    @field_validator("delivery_method")
    @classmethod
    def validate_delivery_method(cls, v: str) -> str:
        if v not in DELIVERY_METHODS:
            raise ValueError(f"Delivery method must be one of {sorted(DELIVERY_METHODS)}")
        return v

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "patient_id": 12,
            "message": "Reminder: your follow-up visit is tomorrow at 10:30 AM.",
            "type": "appointment",
            "category": "reminder",
            "priority": "normal",
            "delivery_method": "push",
            "scheduled_date": "2026-10-19T04:00:00Z",
            "schedule_kind": "scheduled",
        }
    })


class NotificationUpdate(BaseModel):
    """Editable fields while a notification is still scheduled."""

    message: Optional[str] = None
    scheduled_date: Optional[datetime] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "message": "Reminder: your follow-up visit moved to 11:00 AM.",
            "scheduled_date": "2026-10-19T05:30:00Z",
        }
    })


class NotificationStatusUpdate(BaseModel):
    status: NotificationStatus
    failure_reason: Optional[str] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {"status": "failed", "failure_reason": "Device token expired"}
    })


class NotificationResponse(BaseModel):
    id: int
    clinic_id: int
    patient_id: int
    patient_name: Optional[str] = None
    patient_mobile: Optional[str] = None
    type: str
    category: str
    priority: str
    message: str
    delivery_method: str
    status: NotificationStatus
    scheduled_date: datetime
    sent_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_model(cls, notification) -> "NotificationResponse":
        """Build a response with the patient's display fields resolved."""
        response = cls.model_validate(notification)
        patient = notification.patient
        if patient is not None:
            response.patient_name = patient.name
            response.patient_mobile = patient.mobile
        return response


class NotificationCreateResponse(BaseModel):
    success: bool = True
    message: str
    notification: NotificationResponse
    remaining_balance: int


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    total: int
    page: int
    total_pages: int
    limit: int


class CancelNotificationResponse(BaseModel):
    success: bool = True
    message: str
    refunded: bool = Field(..., description="Whether a push credit was returned to the clinic")
    remaining_balance: int
