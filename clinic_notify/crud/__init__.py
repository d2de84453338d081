"""CRUD operations package - exports singleton instances for all clinic-owned models."""

from .base import ClinicScopedCRUD
from .notification import NotificationFilter, crud_notification
from .patient import crud_patient


__all__ = [
    # Base
    "ClinicScopedCRUD",
    "NotificationFilter",
    # CRUD instances
    "crud_notification",
    "crud_patient",
]
