# backend/classbook/core/exceptions.py
"""
Domain-specific exceptions for the class booking platform.

These exceptions provide clear, business-focused error messages with a
stable ``code`` that the API layer passes through unchanged, so callers can
branch on the code rather than on message text.
"""

from typing import Any, Dict, Optional

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
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "VALIDATION_ERROR", details=details)


class UnauthorizedException(DomainException):
    """Raised when the caller is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class PaymentRequiredException(DomainException):
    """Raised when an operation needs credits or payment the caller lacks."""

    status_code = status.HTTP_402_PAYMENT_REQUIRED


class ForbiddenException(DomainException):
    """Raised when the caller lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


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


class ScheduleNotFoundException(NotFoundException):
    def __init__(self, schedule_id: str):
        super().__init__(
            message="Class schedule not found",
            code="SCHEDULE_NOT_FOUND",
            details={"class_schedule_id": schedule_id},
        )


class ScheduleFullException(ConflictException):
    """Raised when a schedule has no free seat left."""

    def __init__(self, schedule_id: str, capacity: Optional[int] = None):
        details: Dict[str, Any] = {"class_schedule_id": schedule_id}
        if capacity is not None:
            details["capacity"] = capacity
        super().__init__(
            message="This class is fully booked",
            code="SCHEDULE_FULL",
            details=details,
        )


class ScheduleInactiveException(BusinessRuleException):
    def __init__(self, schedule_id: str):
        super().__init__(
            message="This class is not open for booking",
            code="SCHEDULE_INACTIVE",
            details={"class_schedule_id": schedule_id},
        )


class ScheduleInPastException(BusinessRuleException):
    def __init__(self, schedule_id: str, start_time: Any):
        super().__init__(
            message="This class has already started",
            code="SCHEDULE_IN_PAST",
            details={"class_schedule_id": schedule_id, "start_time": str(start_time)},
        )


class InsufficientCreditsException(PaymentRequiredException):
    """Raised when a profile's balance cannot cover a deduction."""

    def __init__(self, required: int, available: int):
        super().__init__(
            message=f"Insufficient credits. Required: {required}, Available: {available}",
            code="INSUFFICIENT_CREDITS",
            details={"required_credits": required, "available_credits": available},
        )


class BookingNotFoundException(NotFoundException):
    def __init__(self, booking_id: str):
        super().__init__(
            message="Booking not found",
            code="BOOKING_NOT_FOUND",
            details={"booking_id": booking_id},
        )


class NotOwnerException(ForbiddenException):
    def __init__(self, booking_id: str):
        super().__init__(
            message="This booking belongs to another profile",
            code="NOT_OWNER",
            details={"booking_id": booking_id},
        )


class AlreadyCancelledException(ConflictException):
    """Raised when a booking is no longer in the confirmed state."""

    def __init__(self, booking_id: str, current_status: str):
        super().__init__(
            message=f"Booking cannot be cancelled - current status: {current_status}",
            code="ALREADY_CANCELLED",
            details={"booking_id": booking_id, "booking_status": current_status},
        )


class CancellationWindowClosedException(BusinessRuleException):
    def __init__(self, window_hours: int, deadline: Any):
        super().__init__(
            message=f"Bookings can only be cancelled up to {window_hours} hours before class",
            code="CANCELLATION_WINDOW_CLOSED",
            details={"window_hours": window_hours, "deadline": str(deadline)},
        )


class HasDependentBookingsException(ConflictException):
    def __init__(self, entity: str, entity_id: str, booking_count: int):
        super().__init__(
            message=f"Cannot delete {entity.replace('_', ' ')} with existing bookings",
            code="HAS_DEPENDENT_BOOKINGS",
            details={"entity": entity, "id": entity_id, "booking_count": booking_count},
        )


class CapacityBelowEnrollmentException(ConflictException):
    def __init__(self, schedule_id: str, capacity: int, enrolled_count: int):
        super().__init__(
            message=(
                f"Capacity {capacity} is below the {enrolled_count} confirmed bookings; "
                "cancel bookings before lowering capacity"
            ),
            code="CAPACITY_BELOW_ENROLLMENT",
            details={
                "class_schedule_id": schedule_id,
                "capacity": capacity,
                "enrolled_count": enrolled_count,
            },
        )


class ProfileNotFoundException(NotFoundException):
    def __init__(self, identifier: str):
        super().__init__(
            message="Profile not found",
            code="PROFILE_NOT_FOUND",
            details={"id": identifier},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
