"""FastAPI dependency injection functions for tenant resolution and database access."""

import logging
from typing import Generator, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from clinic_notify.core.exceptions import UnauthorizedException
from clinic_notify.core.security import decode_token
from clinic_notify.core.tenant import resolve_clinic_id
from clinic_notify.database import SessionLocal

logger = logging.getLogger(__name__)

# Bearer token scheme; missing tokens are reported by the tenant guard
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency to get database session.
    
    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_clinic_id(token: Optional[str] = Depends(oauth2_scheme)) -> int:
    """
    Dependency resolving the caller's clinic from the session token.

    Args:
        token: JWT token from Authorization header

    Returns:
        int: The caller's clinic id

    Raises:
        UnauthorizedException: 401 if the token is missing, invalid, or has no clinic
    """
    if not token:
        raise UnauthorizedException()

    payload = decode_token(token)
    clinic_id = resolve_clinic_id(payload)
    logger.debug(f"[AUTH] Resolved clinic_id={clinic_id}")
    return clinic_id


__all__ = [
    "oauth2_scheme",
    "get_db",
    "get_current_clinic_id",
]
