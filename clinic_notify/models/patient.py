from sqlalchemy import Column, Integer, String, Boolean, TIMESTAMP, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class Patient(Base):
    __tablename__ = "patients"
    
    id = Column(Integer, primary_key=True, index=True)
    
    # Owning clinic
    clinic_id = Column(Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False, index=True)
    
    # Identity & Contact
    name = Column(String(255), nullable=False)
    mobile = Column(String(20), nullable=False)
    
    # Push device registration
    fcm_token = Column(String(500))
    
    # Opted-out patients receive no push notifications
    opt_out = Column(Boolean, nullable=False, default=False)
    
    # Timestamps
    created_at = Column(TIMESTAMP, server_default=func.now())
    
    # Relationships
    clinic = relationship("Clinic", back_populates="patients")
    app_installations = relationship("AppInstallation", back_populates="patient", cascade="all, delete-orphan")
