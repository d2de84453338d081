from sqlalchemy import Column, Integer, String, Boolean, TIMESTAMP, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class AppInstallation(Base):
    __tablename__ = "app_installations"
    
    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False)
    
    # Device
    device_type = Column(String(20))  # android, ios
    app_version = Column(String(20))
    
    # Status
    is_active = Column(Boolean, default=True)
    installed_at = Column(TIMESTAMP, server_default=func.now())
    
    __table_args__ = (
        Index("ix_app_installations_patient_active", "patient_id", "is_active"),
    )
    
    # Relationships
    patient = relationship("Patient", back_populates="app_installations")
