# backend/classbook/services/booking_service.py
"""
Booking engine.

Bookings move ``confirmed -> cancelled`` through this service; ``attended``
and ``no_show`` are set by attendance workflows outside it. Creating and
cancelling a booking each touch three things (the booking row, the
schedule's seat count, the profile's ledger) and all three commit or roll
back together.
"""

from datetime import timedelta
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import BookingStatus, TransactionType
from ..core.exceptions import (
    AlreadyCancelledException,
    BookingNotFoundException,
    CancellationWindowClosedException,
    DomainException,
    InsufficientCreditsException,
    NotOwnerException,
    ProfileNotFoundException,
)
from ..core.timezone_utils import Clock, ensure_utc, utc_now
from ..models.booking import Booking
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .capacity_service import CapacityService
from .credit_ledger_service import CreditLedgerService

logger = logging.getLogger(__name__)


class BookingService(BaseService):
    """Creates and cancels bookings against seats and credits."""

    def __init__(
        self,
        db: Session,
        clock: Clock = utc_now,
        cancellation_window_hours: Optional[int] = None,
    ):
        super().__init__(db, clock)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.profile_repository = RepositoryFactory.create_profile_repository(db)
        self.capacity_service = CapacityService(db, clock)
        self.ledger_service = CreditLedgerService(db, clock)
        self.cancellation_window = timedelta(
            hours=(
                settings.cancellation_window_hours
                if cancellation_window_hours is None
                else cancellation_window_hours
            )
        )

    @BaseService.measure_operation("create_booking")
    def create_booking(self, profile_id: str, schedule_id: str) -> Booking:
        """
        Book one seat on a schedule for a profile, paying with credits.

        The seat increment, the ``booking_payment`` debit and the booking
        insert are one transaction.

        Raises:
            ScheduleNotFoundException: Unknown schedule
            ScheduleInactiveException: Schedule or its class type is inactive
            ScheduleInPastException: Class already started
            ScheduleFullException: No free seat
            InsufficientCreditsException: Balance below the class cost
        """
        try:
            with self.transaction():
                schedule = self.capacity_service.load_bookable_schedule(schedule_id)
                profile = self.profile_repository.get_for_update(profile_id)
                if profile is None:
                    raise ProfileNotFoundException(profile_id)

                cost = schedule.class_type.credit_cost
                if profile.credit_balance < cost:
                    raise InsufficientCreditsException(
                        required=cost, available=profile.credit_balance
                    )

                self.capacity_service.reserve_seat(schedule_id, use_transaction=False)

                booking = self.booking_repository.create(
                    profile_id=profile_id,
                    class_schedule_id=schedule_id,
                    booking_status=BookingStatus.CONFIRMED.value,
                    credits_used=cost,
                    booking_time=self.clock(),
                    created_at=self.clock(),
                )
                new_balance = self.ledger_service.apply_credit_delta(
                    profile_id=profile_id,
                    amount=-cost,
                    transaction_type=TransactionType.BOOKING_PAYMENT,
                    description=f"Booking: {schedule.class_type.name}",
                    booking_id=booking.id,
                    use_transaction=False,
                )
        except DomainException as e:
            prometheus_metrics.inc_booking_outcome(e.code)
            raise

        prometheus_metrics.inc_booking_outcome("created")
        self.log_operation(
            "create_booking",
            booking_id=booking.id,
            profile_id=profile_id,
            class_schedule_id=schedule_id,
            credits_used=cost,
            balance_after=new_balance,
        )
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self,
        booking_id: str,
        requesting_profile_id: str,
        *,
        admin_override: bool = False,
    ) -> Booking:
        """
        Cancel a confirmed booking, release its seat and refund its credits.

        ``admin_override`` skips the ownership check only; the cancellation
        window applies to everyone.

        Raises:
            BookingNotFoundException: Unknown booking
            NotOwnerException: Requester does not own the booking
            AlreadyCancelledException: Booking is not confirmed
            CancellationWindowClosedException: Too close to the class start
        """
        try:
            with self.transaction():
                booking = self.booking_repository.get_for_update(booking_id)
                if booking is None:
                    raise BookingNotFoundException(booking_id)
                if booking.profile_id != requesting_profile_id and not admin_override:
                    raise NotOwnerException(booking_id)
                if booking.booking_status != BookingStatus.CONFIRMED.value:
                    raise AlreadyCancelledException(booking_id, booking.booking_status)

                now = self.clock()
                deadline = ensure_utc(booking.class_schedule.start_time) - self.cancellation_window
                if now > deadline:
                    raise CancellationWindowClosedException(
                        int(self.cancellation_window.total_seconds() // 3600), deadline
                    )

                booking.cancel(requesting_profile_id, now)
                self.booking_repository.flush()
                self.capacity_service.release_seat(
                    booking.class_schedule_id, use_transaction=False
                )
                if booking.credits_used > 0:
                    self.ledger_service.apply_credit_delta(
                        profile_id=booking.profile_id,
                        amount=booking.credits_used,
                        transaction_type=TransactionType.BOOKING_REFUND,
                        description="Refund for cancelled booking",
                        booking_id=booking.id,
                        admin_user_id=(
                            requesting_profile_id
                            if requesting_profile_id != booking.profile_id
                            else None
                        ),
                        use_transaction=False,
                    )
        except DomainException as e:
            prometheus_metrics.inc_booking_outcome(e.code)
            raise

        prometheus_metrics.inc_booking_outcome("cancelled")
        self.log_operation(
            "cancel_booking",
            booking_id=booking_id,
            cancelled_by=requesting_profile_id,
            refunded=booking.credits_used,
        )
        return booking

    @BaseService.measure_operation("get_booking")
    def get_booking(
        self, booking_id: str, requesting_profile_id: str, *, admin_override: bool = False
    ) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise BookingNotFoundException(booking_id)
        if booking.profile_id != requesting_profile_id and not admin_override:
            raise NotOwnerException(booking_id)
        return booking

    @BaseService.measure_operation("get_bookings_for_profile")
    def get_bookings_for_profile(
        self,
        profile_id: str,
        status: Optional[BookingStatus] = None,
        upcoming_only: bool = False,
    ) -> List[Booking]:
        """A profile's bookings with schedule, class type and instructor loaded."""
        return self.booking_repository.get_profile_bookings(
            profile_id,
            status=BookingStatus(status).value if status else None,
            upcoming_from=self.clock() if upcoming_only else None,
        )
