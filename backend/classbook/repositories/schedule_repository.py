# backend/classbook/repositories/schedule_repository.py
"""
Class schedule repository.

Seat accounting goes through ``try_reserve_seat``/``release_seat``. Both are
single conditional UPDATE statements, so the capacity check and the
increment happen atomically inside the database even when two sessions race
for the last seat.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.class_schedule import ClassSchedule
from ..models.class_type import ClassType
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ScheduleRepository(BaseRepository[ClassSchedule]):
    def __init__(self, db: Session):
        super().__init__(db, ClassSchedule)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(ClassSchedule.class_type),
            joinedload(ClassSchedule.instructor),
        )

    def get_for_update(self, schedule_id: str) -> Optional[ClassSchedule]:
        """
        Load a schedule with its class type, refreshing any stale identity-map state.

        On dialects with row locks the schedule row is locked for the rest of
        the transaction.
        """
        try:
            query = self.db.query(ClassSchedule).filter(ClassSchedule.id == schedule_id)
            if self.supports_row_locks:
                query = query.with_for_update(of=ClassSchedule)
            schedule = query.populate_existing().first()
            if schedule is not None:
                # touch the relationship while the lock is held
                _ = schedule.class_type
            return schedule
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking schedule {schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock schedule: {str(e)}") from e

    def try_reserve_seat(self, schedule_id: str) -> bool:
        """Increment ``enrolled_count`` if a seat is free and the schedule is active."""
        try:
            updated = (
                self.db.query(ClassSchedule)
                .filter(
                    ClassSchedule.id == schedule_id,
                    ClassSchedule.is_active.is_(True),
                    ClassSchedule.enrolled_count < ClassSchedule.capacity,
                )
                .update(
                    {ClassSchedule.enrolled_count: ClassSchedule.enrolled_count + 1},
                    synchronize_session="fetch",
                )
            )
            return updated == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error reserving seat on {schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to reserve seat: {str(e)}") from e

    def release_seat(self, schedule_id: str) -> bool:
        """Decrement ``enrolled_count``, never below zero."""
        try:
            updated = (
                self.db.query(ClassSchedule)
                .filter(ClassSchedule.id == schedule_id, ClassSchedule.enrolled_count > 0)
                .update(
                    {ClassSchedule.enrolled_count: ClassSchedule.enrolled_count - 1},
                    synchronize_session="fetch",
                )
            )
            return updated == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error releasing seat on {schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to release seat: {str(e)}") from e

    def get_upcoming(
        self,
        from_time: datetime,
        class_type_id: Optional[str] = None,
        instructor_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[ClassSchedule]:
        """Active schedules starting after ``from_time`` with class type and instructor joined."""
        query = (
            self._apply_eager_loading(self._build_query())
            .join(ClassSchedule.class_type)
            .filter(
                ClassSchedule.is_active.is_(True),
                ClassType.is_active.is_(True),
                ClassSchedule.start_time > from_time,
            )
        )
        if class_type_id:
            query = query.filter(ClassSchedule.class_type_id == class_type_id)
        if instructor_id:
            query = query.filter(ClassSchedule.instructor_id == instructor_id)
        return self._execute_query(query.order_by(ClassSchedule.start_time.asc()).limit(limit))

    def list_ids_for_class_type(self, class_type_id: str) -> List[str]:
        rows = self.db.query(ClassSchedule.id).filter(ClassSchedule.class_type_id == class_type_id)
        return [row[0] for row in self._execute_query(rows)]

    def list_ids_for_instructor(self, instructor_id: str) -> List[str]:
        rows = self.db.query(ClassSchedule.id).filter(ClassSchedule.instructor_id == instructor_id)
        return [row[0] for row in self._execute_query(rows)]

    def count_upcoming(self, now: datetime) -> int:
        query = self.db.query(func.count(ClassSchedule.id)).filter(
            ClassSchedule.is_active.is_(True), ClassSchedule.start_time > now
        )
        return int(self._execute_scalar(query) or 0)

    def count_near_capacity(self, now: datetime, ratio: float) -> int:
        """Count active future schedules whose fill ratio is at least ``ratio``."""
        query = self.db.query(func.count(ClassSchedule.id)).filter(
            ClassSchedule.is_active.is_(True),
            ClassSchedule.start_time > now,
            ClassSchedule.enrolled_count * 1.0 >= ClassSchedule.capacity * ratio,
        )
        return int(self._execute_scalar(query) or 0)

    def delete_many(self, schedule_ids: List[str]) -> int:
        if not schedule_ids:
            return 0
        try:
            return (
                self.db.query(ClassSchedule)
                .filter(ClassSchedule.id.in_(schedule_ids))
                .delete(synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting schedules: {str(e)}")
            raise RepositoryException(f"Failed to delete schedules: {str(e)}") from e
