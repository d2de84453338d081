"""Exception taxonomy for the notification engine.

Every exception is an ``HTTPException`` so route handlers can let it
propagate untouched; each also carries a stable ``code`` that callers can
match on instead of parsing ``detail``.
"""

from typing import Optional

from fastapi import HTTPException, status


class NotificationEngineException(HTTPException):
    """Base exception for the notification engine."""

    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "error"
    default_detail: str = "Unexpected error"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.status_code_default,
            detail=detail or self.default_detail,
            headers=headers,
        )


class UnauthorizedException(NotificationEngineException):
    """Raised when the caller carries no clinic identity."""

    status_code_default = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"
    default_detail = "Unauthorized"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail=detail, headers={"WWW-Authenticate": "Bearer"})


class NotFoundException(NotificationEngineException):
    status_code_default = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Resource not found"


class PatientNotFoundException(NotFoundException):
    code = "patient_not_found"
    default_detail = "Patient not found"


class NotificationNotFoundException(NotFoundException):
    code = "notification_not_found"
    default_detail = "Notification not found"


class ClinicNotFoundException(NotFoundException):
    code = "clinic_not_found"
    default_detail = "Clinic not found"


class InvalidInputException(NotificationEngineException):
    status_code_default = status.HTTP_400_BAD_REQUEST
    code = "invalid_input"
    default_detail = "Invalid input"


class EmptyMessageException(InvalidInputException):
    code = "empty_message"
    default_detail = "Message is required"


class PatientOptedOutException(InvalidInputException):
    code = "patient_opted_out"
    default_detail = "This patient has opted out of push notifications"


class PushTokenMissingException(InvalidInputException):
    code = "push_token_missing"
    default_detail = (
        "Patient has no registered push device. "
        "Use another delivery method such as sms or whatsapp."
    )


class AppNotInstalledException(InvalidInputException):
    code = "app_not_installed"
    default_detail = "Patient does not have the app installed"


class InsufficientBalanceException(InvalidInputException):
    code = "insufficient_balance"
    default_detail = (
        "Insufficient notification balance. "
        "Please top up your push notification balance to send notifications."
    )


class NotCancellableException(InvalidInputException):
    code = "not_cancellable"
    default_detail = "Only scheduled notifications can be deleted"


class NotEditableException(InvalidInputException):
    code = "not_editable"
    default_detail = "Only scheduled notifications can be edited"


class InvalidTransitionException(NotificationEngineException):
    """
    Raised when the requested status is not reachable from the current one.

    Status Code: 409 Conflict

    Response Body:
        {
            "detail": "Cannot transition notification from 'read' to 'sent'",
            "code": "invalid_transition"
        }
    """

    status_code_default = status.HTTP_409_CONFLICT
    code = "invalid_transition"
    default_detail = "Illegal status transition"

    def __init__(self, current: Optional[str] = None, target: Optional[str] = None):
        detail = None
        if current is not None and target is not None:
            detail = f"Cannot transition notification from '{current}' to '{target}'"
        super().__init__(detail=detail)


class StoreFailureException(NotificationEngineException):
    code = "store_failure"
    default_detail = "Database operation failed"


__all__ = [
    "NotificationEngineException",
    "UnauthorizedException",
    "NotFoundException",
    "PatientNotFoundException",
    "NotificationNotFoundException",
    "ClinicNotFoundException",
    "InvalidInputException",
    "EmptyMessageException",
    "PatientOptedOutException",
    "PushTokenMissingException",
    "AppNotInstalledException",
    "InsufficientBalanceException",
    "NotCancellableException",
    "NotEditableException",
    "InvalidTransitionException",
    "StoreFailureException",
]
