"""Patient device directory lookups used by the notification engine."""

import logging
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from clinic_notify.models.app_installation import AppInstallation
from clinic_notify.models.patient import Patient

logger = logging.getLogger(__name__)


class DeviceDirectory(Protocol):
    """Read-only view of which patients can receive push notifications."""

    def has_push_capability(self, db: Session, patient: Patient) -> bool:
        ...

    def has_active_app_install(self, db: Session, patient: Patient) -> bool:
        ...


class SQLDeviceDirectory:
    """Device directory backed by `patients.fcm_token` and `app_installations`."""

    def has_push_capability(self, db: Session, patient: Patient) -> bool:
        token = getattr(patient, "fcm_token", None)
        if not token or not token.strip():
            logger.debug(f"No FCM token for patient_id={patient.id}")
            return False
        return True

    def has_active_app_install(self, db: Session, patient: Patient) -> bool:
        stmt = (
            select(AppInstallation.id)
            .where(
                AppInstallation.patient_id == patient.id,
                AppInstallation.is_active == True,  # noqa: E712
            )
            .limit(1)
        )
        return db.scalar(stmt) is not None


# Singleton instance
device_directory = SQLDeviceDirectory()
