# backend/aura/core/exceptions.py
"""
Domain-specific exceptions for the Aura verification backend.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Expected negative verification outcomes (wrong code, expired code)
are returned as values and never raised.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenException(DomainException):
    """Raised when the caller lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class RateLimitExceededException(DomainException):
    """Raised when a phone requests more codes than the hourly allowance."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, retry_after_seconds: int, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Too many verification codes requested. Please wait before trying again.",
            code="RATE_LIMITED",
            details=details or {},
        )
        self.retry_after_seconds = retry_after_seconds

    def to_http_exception(self) -> HTTPException:
        exc = super().to_http_exception()
        exc.headers = {"Retry-After": str(self.retry_after_seconds)}
        return exc


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific verification exceptions


class InvalidPhoneException(ValidationException):
    """Raised when a phone number matches none of the recognized shapes."""

    def __init__(self, raw_phone: Optional[str] = None):
        super().__init__(
            message=(
                "Invalid phone number format. Egyptian numbers: +201XXXXXXXXX or "
                "01XXXXXXXXX. International: +1234567890"
            ),
            code="INVALID_PHONE",
        )
        self.raw_phone = raw_phone


class StorePersistenceException(ServiceException):
    """Raised when the verification store cannot read or write its records."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="STORE_UNAVAILABLE", details=details)


class DeliveryFailedException(ServiceException):
    """Raised when no delivery channel, simulated included, accepted the code."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            message="Failed to send verification code",
            code="DELIVERY_FAILED",
            details={"reason": reason} if reason else {},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


class DeliveryError(Exception):
    """A single channel failed to deliver; the router falls back on it."""

    def __init__(self, reason: str, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or reason)


class DeliveryConfigurationMissing(DeliveryError):
    """A channel was asked to send without its credentials configured."""

    def __init__(self, channel: str):
        super().__init__(
            reason=f"{channel}_not_configured",
            message=f"{channel} credentials are not configured",
        )
        self.channel = channel


class RepositoryConflictException(RepositoryException):
    """Raised when a write violates a uniqueness constraint."""
