"""CRUD operations for `Patient` model."""

from clinic_notify.crud.base import ClinicScopedCRUD
from clinic_notify.models.patient import Patient


# Singleton instance
crud_patient = ClinicScopedCRUD(Patient)
