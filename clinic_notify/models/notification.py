from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey, Text, CheckConstraint, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..core.state_machine import NotificationStatus
from ..database import Base


def _in_clause(column: str, values) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


NOTIFICATION_TYPES = ("appointment", "medicine", "reminder", "followup", "review", "announcement")
DELIVERY_METHODS = ("push", "sms", "whatsapp", "in_app")
PRIORITIES = ("low", "normal", "high", "urgent")


class Notification(Base):
    __tablename__ = "notifications"
    
    id = Column(Integer, primary_key=True, index=True)
    
    # Tenant & Recipient (immutable)
    clinic_id = Column(Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    
    # Content
    message = Column(Text, nullable=False)
    
    # Classification
    type = Column(String(30), nullable=False, default="reminder")
    category = Column(String(30), nullable=False, default="reminder")
    priority = Column(String(20), nullable=False, default="normal")
    
    # Delivery
    delivery_method = Column(String(20), nullable=False, default="push")
    status = Column(String(20), nullable=False, default=NotificationStatus.SCHEDULED.value, index=True)
    failure_reason = Column(Text)
    
    # Lifecycle timestamps
    scheduled_date = Column(TIMESTAMP, nullable=False, index=True)
    sent_at = Column(TIMESTAMP)
    delivered_at = Column(TIMESTAMP)
    read_at = Column(TIMESTAMP)
    
    created_at = Column(TIMESTAMP, server_default=func.now())
    
    # Constraints and Indexes
    __table_args__ = (
        CheckConstraint(_in_clause("status", [s.value for s in NotificationStatus]), name="check_notification_status"),
        CheckConstraint(_in_clause("type", NOTIFICATION_TYPES), name="check_notification_type"),
        CheckConstraint(_in_clause("delivery_method", DELIVERY_METHODS), name="check_delivery_method"),
        CheckConstraint(_in_clause("priority", PRIORITIES), name="check_notification_priority"),
        CheckConstraint("length(trim(message)) > 0", name="check_message_not_empty"),
        Index("ix_notifications_clinic_status_scheduled", "clinic_id", "status", "scheduled_date"),
        Index("ix_notifications_clinic_sent_at", "clinic_id", "sent_at"),
    )
    
    # Relationships
    patient = relationship("Patient")
    clinic = relationship("Clinic")
