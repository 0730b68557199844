"""
Seat accounting for class schedules.

``enrolled_count`` is only ever moved here, one seat at a time, with the
capacity check and the increment done by a single conditional UPDATE.
"""

import logging

from sqlalchemy.orm import Session

from ..core.exceptions import (
    ScheduleFullException,
    ScheduleInactiveException,
    ScheduleInPastException,
    ScheduleNotFoundException,
)
from ..core.timezone_utils import Clock, ensure_utc, utc_now
from ..models.class_schedule import ClassSchedule
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class CapacityService(BaseService):
    def __init__(self, db: Session, clock: Clock = utc_now):
        super().__init__(db, clock)
        self.schedule_repository = RepositoryFactory.create_schedule_repository(db)

    def load_bookable_schedule(self, schedule_id: str) -> ClassSchedule:
        """
        Load a schedule and check it can take a booking right now.

        Raises:
            ScheduleNotFoundException, ScheduleInactiveException,
            ScheduleInPastException, ScheduleFullException
        """
        schedule = self.schedule_repository.get_for_update(schedule_id)
        if schedule is None:
            raise ScheduleNotFoundException(schedule_id)
        if not schedule.is_active or not schedule.class_type.is_active:
            raise ScheduleInactiveException(schedule_id)
        start_time = ensure_utc(schedule.start_time)
        if start_time <= self.clock():
            raise ScheduleInPastException(schedule_id, start_time)
        if schedule.enrolled_count >= schedule.capacity:
            raise ScheduleFullException(schedule_id, schedule.capacity)
        return schedule

    @BaseService.measure_operation("reserve_seat")
    def reserve_seat(self, schedule_id: str, use_transaction: bool = True) -> ClassSchedule:
        """Take one seat on a schedule, failing if none is free."""

        def _reserve() -> ClassSchedule:
            schedule = self.load_bookable_schedule(schedule_id)
            if not self.schedule_repository.try_reserve_seat(schedule_id):
                # Another writer took the last seat (or deactivated the schedule)
                # between our read and the conditional update.
                schedule = self.schedule_repository.get_for_update(schedule_id)
                if schedule is not None and not schedule.is_active:
                    raise ScheduleInactiveException(schedule_id)
                raise ScheduleFullException(
                    schedule_id, schedule.capacity if schedule is not None else None
                )
            self.db.refresh(schedule)
            self.logger.debug(
                f"Seat reserved on {schedule_id}: {schedule.enrolled_count}/{schedule.capacity}"
            )
            return schedule

        if use_transaction:
            with self.transaction():
                return _reserve()
        return _reserve()

    @BaseService.measure_operation("release_seat")
    def release_seat(self, schedule_id: str, use_transaction: bool = True) -> bool:
        """Give back one seat. Returns False if the count was already zero."""

        def _release() -> bool:
            released = self.schedule_repository.release_seat(schedule_id)
            if not released:
                self.logger.warning(
                    f"release_seat on {schedule_id} found enrolled_count already at 0"
                )
            return released

        if use_transaction:
            with self.transaction():
                return _release()
        return _release()
