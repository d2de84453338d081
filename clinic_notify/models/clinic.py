from sqlalchemy import Column, Integer, String, TIMESTAMP, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class Clinic(Base):
    __tablename__ = "clinics"
    
    id = Column(Integer, primary_key=True, index=True)
    
    # Basic Info
    name = Column(String(255), nullable=False)
    timezone = Column(String(64))  # IANA name, falls back to settings.DEFAULT_TIMEZONE
    
    # Remaining push notification credits
    push_notification_balance = Column(Integer, nullable=False, default=0, server_default="0")
    
    # Timestamps
    created_at = Column(TIMESTAMP, server_default=func.now())
    
    # Constraints
    __table_args__ = (
        CheckConstraint("push_notification_balance >= 0", name="check_push_balance_non_negative"),
    )
    
    # Relationships
    patients = relationship("Patient", back_populates="clinic")
