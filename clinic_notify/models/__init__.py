"""
SQLAlchemy Models for the clinic notification engine
"""

from ..database import Base
from .clinic import Clinic
from .patient import Patient
from .app_installation import AppInstallation
from .notification import Notification

# Export all models
__all__ = [
    "Base",
    "Clinic",
    "Patient",
    "AppInstallation",
    "Notification",
]
