"""
Custom exceptions for the application.
Project: Stair Ledger

Domain-specific exceptions with a centralised error handling contract.

NOTE: BusinessValidationError is distinct from pydantic.ValidationError.
- pydantic.ValidationError: malformed input data (FastAPI → 422)
- BusinessValidationError: business rule violations (our handler → 422)
"""

from typing import Any, Dict, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "DuplicateError",
    "BusinessValidationError",
    "ConflictError",
]


class AppException(Exception):
    """
    Base exception for the application.

    Attributes:
        status_code: HTTP status code returned to the client
        error_code: Stable identifier the frontend can switch on
        detail: Human readable message
        extra: Optional additional payload for the frontend
    """

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        detail: str,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.detail = detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra
        self.status_code = self.__class__.status_code
        super().__init__(detail)


class NotFoundError(AppException):
    """Raised when a requested record does not exist."""

    status_code: int = 404
    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(
        self,
        detail: str = "Resource not found",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class DuplicateError(AppException):
    """
    Raised when creating a record that already exists.

    Used for unique constraint violations (e.g. invoice number already taken).
    """

    status_code: int = 409
    error_code: str = "DUPLICATE_RESOURCE"

    def __init__(
        self,
        detail: str = "Resource already exists",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class BusinessValidationError(ValueError, AppException):
    """
    Raised for business rule violations.

    Inherits from ValueError so pydantic validators can raise it.

    Examples:
        - "Client name is required"
        - "Amount must be greater than zero"
        - "No labour items found to apply CIS to"
    """

    status_code: int = 422
    error_code: str = "BUSINESS_VALIDATION_ERROR"

    def __init__(
        self,
        detail: str = "Validation failed",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        # Call AppException.__init__ directly to skip ValueError's signature
        AppException.__init__(self, detail, error_code, extra)


class ConflictError(AppException):
    """
    Raised when an operation conflicts with the current state.

    Also used to surface persistence failures after a rollback.
    """

    status_code: int = 409
    error_code: str = "CONFLICT_STATE"

    def __init__(
        self,
        detail: str = "State conflict",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)
