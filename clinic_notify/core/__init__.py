"""Core module exports."""

from .security import create_access_token, decode_token
from .tenant import require_clinic_id, resolve_clinic_id

__all__ = [
    "create_access_token",
    "decode_token",
    "require_clinic_id",
    "resolve_clinic_id",
]
