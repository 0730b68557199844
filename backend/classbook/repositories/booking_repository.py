# backend/classbook/repositories/booking_repository.py
"""
Booking repository.

Read helpers eager-load the schedule with its class type and instructor so
callers never have to join rows in memory.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.enums import BookingStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from ..models.class_schedule import ClassSchedule
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(Booking.class_schedule).joinedload(ClassSchedule.class_type),
            joinedload(Booking.class_schedule).joinedload(ClassSchedule.instructor),
        )

    def get_for_update(self, booking_id: str) -> Optional[Booking]:
        """Load a booking fresh from the database, locking it where supported."""
        try:
            query = self.db.query(Booking).filter(Booking.id == booking_id)
            if self.supports_row_locks:
                query = query.with_for_update()
            return query.populate_existing().first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock booking: {str(e)}") from e

    def get_profile_bookings(
        self,
        profile_id: str,
        status: Optional[str] = None,
        upcoming_from: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[Booking]:
        query = (
            self._apply_eager_loading(self._build_query())
            .join(Booking.class_schedule)
            .filter(Booking.profile_id == profile_id)
        )
        if status:
            query = query.filter(Booking.booking_status == status)
        if upcoming_from is not None:
            query = query.filter(ClassSchedule.start_time > upcoming_from)
            query = query.order_by(ClassSchedule.start_time.asc())
        else:
            query = query.order_by(Booking.booking_time.desc())
        return self._execute_query(query.limit(limit))

    def get_confirmed_for_schedules(self, schedule_ids: List[str]) -> List[Booking]:
        if not schedule_ids:
            return []
        query = self.db.query(Booking).filter(
            Booking.class_schedule_id.in_(schedule_ids),
            Booking.booking_status == BookingStatus.CONFIRMED.value,
        )
        return self._execute_query(query)

    def count_for_schedules(self, schedule_ids: List[str]) -> int:
        if not schedule_ids:
            return 0
        query = self.db.query(func.count(Booking.id)).filter(
            Booking.class_schedule_id.in_(schedule_ids)
        )
        return int(self._execute_scalar(query) or 0)

    def count_confirmed_for_schedule(self, schedule_id: str) -> int:
        query = self.db.query(func.count(Booking.id)).filter(
            Booking.class_schedule_id == schedule_id,
            Booking.booking_status == BookingStatus.CONFIRMED.value,
        )
        return int(self._execute_scalar(query) or 0)

    def has_attending_booking(self, profile_id: str, schedule_id: str) -> bool:
        """True when the profile holds a booking on the schedule that was not cancelled."""
        query = self.db.query(func.count(Booking.id)).filter(
            Booking.profile_id == profile_id,
            Booking.class_schedule_id == schedule_id,
            Booking.booking_status != BookingStatus.CANCELLED.value,
        )
        return int(self._execute_scalar(query) or 0) > 0

    def count_since(self, since: datetime) -> int:
        query = self.db.query(func.count(Booking.id)).filter(Booking.booking_time >= since)
        return int(self._execute_scalar(query) or 0)

    def delete_for_schedules(self, schedule_ids: List[str]) -> int:
        if not schedule_ids:
            return 0
        try:
            return (
                self.db.query(Booking)
                .filter(Booking.class_schedule_id.in_(schedule_ids))
                .delete(synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting bookings: {str(e)}")
            raise RepositoryException(f"Failed to delete bookings: {str(e)}") from e
