# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the driving-school scheduling engine.

Services raise these; the API layer turns them into HTTP responses via
``to_http_exception``. Data-access failures surface as RepositoryException.
"""

from typing import Any, Dict, List, NoReturn, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


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
    """Raised when input or business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when the caller is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class BookingConflictException(ConflictException):
    """Raised when a booking overlaps existing active bookings."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        conflicts: Optional[List[Dict[str, Any]]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged = dict(details or {})
        if conflicts is not None:
            merged["conflicts"] = conflicts
        super().__init__(
            message=message or "This time slot conflicts with an existing booking",
            code="BOOKING_CONFLICT",
            details=merged,
        )
        self.conflicts = conflicts or []


class AvailabilityOverlapException(ConflictException):
    """Raised when an availability slot overlaps with an existing slot."""

    def __init__(
        self,
        specific_date: str,
        new_range: str,
        conflicting_range: str,
    ):
        super().__init__(
            message=(
                f"Overlapping slot on {specific_date}: {new_range} conflicts with {conflicting_range}"
            ),
            code="AVAILABILITY_OVERLAP",
            details={
                "date": specific_date,
                "new_slot": new_range,
                "conflicting_slot": conflicting_range,
            },
        )


class InvalidStatusTransitionException(BusinessRuleException):
    """Raised when a booking status change is not allowed from its current status."""

    def __init__(self, current_status: str, requested_status: str):
        super().__init__(
            message=f"Cannot change booking status from {current_status} to {requested_status}",
            code="INVALID_STATUS_TRANSITION",
            details={"current_status": current_status, "requested_status": requested_status},
        )


class DispatchFailure(Exception):
    """
    Raised by the reminder sweep when the notification dispatcher reports failure.

    Never leaves the sweep: the entry stays pending and is retried on the next run.
    """

    def __init__(self, entry_id: str, reason: str):
        self.entry_id = entry_id
        self.reason = reason
        super().__init__(f"Dispatch failed for reminder {entry_id}: {reason}")


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    raise exc.to_http_exception()
