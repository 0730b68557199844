# backend/classbook/repositories/factory.py
"""
Repository Factory.

Provides centralized creation of repository instances, ensuring consistent
initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .class_type_repository import ClassTypeRepository
    from .credit_repository import CreditPurchaseRepository, CreditTransactionRepository
    from .instructor_repository import InstructorRepository
    from .material_repository import MaterialRepository
    from .profile_repository import ProfileRepository
    from .schedule_repository import ScheduleRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_profile_repository(db: Session) -> "ProfileRepository":
        from .profile_repository import ProfileRepository

        return ProfileRepository(db)

    @staticmethod
    def create_class_type_repository(db: Session) -> "ClassTypeRepository":
        from .class_type_repository import ClassTypeRepository

        return ClassTypeRepository(db)

    @staticmethod
    def create_instructor_repository(db: Session) -> "InstructorRepository":
        from .instructor_repository import InstructorRepository

        return InstructorRepository(db)

    @staticmethod
    def create_schedule_repository(db: Session) -> "ScheduleRepository":
        """Create repository for class schedules and seat accounting."""
        from .schedule_repository import ScheduleRepository

        return ScheduleRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_credit_transaction_repository(db: Session) -> "CreditTransactionRepository":
        """Create repository for the append-only credit ledger."""
        from .credit_repository import CreditTransactionRepository

        return CreditTransactionRepository(db)

    @staticmethod
    def create_credit_purchase_repository(db: Session) -> "CreditPurchaseRepository":
        from .credit_repository import CreditPurchaseRepository

        return CreditPurchaseRepository(db)

    @staticmethod
    def create_material_repository(db: Session) -> "MaterialRepository":
        from .material_repository import MaterialRepository

        return MaterialRepository(db)
