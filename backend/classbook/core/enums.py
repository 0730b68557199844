"""
Core enums for the class booking platform.

Stored as plain strings in the database; these enums are the single place
that lists the allowed values.
"""

from enum import Enum


class RoleName(str, Enum):
    """Profile roles."""

    ADMIN = "admin"
    STUDENT = "student"


class BookingStatus(str, Enum):
    """Booking lifecycle statuses. Only CONFIRMED is creatable."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    ATTENDED = "attended"
    NO_SHOW = "no_show"


class TransactionType(str, Enum):
    """Credit ledger entry types."""

    CREDIT_PURCHASE = "credit_purchase"
    CREDIT_ADDED = "credit_added"
    CREDIT_DEDUCTED = "credit_deducted"
    BOOKING_PAYMENT = "booking_payment"
    BOOKING_REFUND = "booking_refund"

    @property
    def is_deduction(self) -> bool:
        return self in DEDUCTION_TYPES


DEDUCTION_TYPES = frozenset({TransactionType.BOOKING_PAYMENT, TransactionType.CREDIT_DEDUCTED})


class AdminEntity(str, Enum):
    CLASS_TYPE = "class_type"
    INSTRUCTOR = "instructor"
    CLASS_SCHEDULE = "class_schedule"
    MATERIAL = "material"


class AdminAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
