"""Tenant guard: every engine call is scoped to exactly one clinic."""

import logging
from typing import Any, Mapping, Optional

from clinic_notify.core.exceptions import UnauthorizedException

logger = logging.getLogger(__name__)


def resolve_clinic_id(payload: Optional[Mapping[str, Any]]) -> int:
    """Extract the clinic id from a decoded session payload.

    Raises:
        UnauthorizedException: If the payload carries no usable clinic id.
    """
    if not payload:
        raise UnauthorizedException()

    raw = payload.get("clinic_id")
    if raw is None or isinstance(raw, bool):
        logger.warning("[TENANT] Session payload has no clinic_id")
        raise UnauthorizedException()

    if isinstance(raw, int):
        clinic_id = raw
    elif isinstance(raw, str) and raw.strip().isdecimal():
        clinic_id = int(raw.strip())
    else:
        logger.warning(f"[TENANT] Malformed clinic_id in session: {raw!r}")
        raise UnauthorizedException()

    return require_clinic_id(clinic_id)


def require_clinic_id(clinic_id: Optional[int]) -> int:
    """Reject a missing or non-positive clinic id before any work happens."""
    if clinic_id is None or isinstance(clinic_id, bool) or not isinstance(clinic_id, int) or clinic_id <= 0:
        raise UnauthorizedException()
    return clinic_id
