"""
Read-only catalog queries.

Joins happen in the database; callers receive schedules with their class
type and instructor already loaded.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import ForbiddenException, ScheduleNotFoundException
from ..core.timezone_utils import Clock, ensure_utc, utc_now
from ..models.class_schedule import ClassSchedule
from ..models.class_type import ClassType
from ..models.instructor import Instructor
from ..models.material import Material
from ..models.profile import Profile
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class CatalogService(BaseService):
    def __init__(self, db: Session, clock: Clock = utc_now):
        super().__init__(db, clock)
        self.schedule_repository = RepositoryFactory.create_schedule_repository(db)
        self.class_type_repository = RepositoryFactory.create_class_type_repository(db)
        self.instructor_repository = RepositoryFactory.create_instructor_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.material_repository = RepositoryFactory.create_material_repository(db)

    @BaseService.measure_operation("list_upcoming_classes")
    def list_upcoming_classes(
        self,
        from_time: Optional[datetime] = None,
        class_type_id: Optional[str] = None,
        instructor_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[ClassSchedule]:
        """Active schedules starting after ``from_time`` (default now), soonest first."""
        start = ensure_utc(from_time) if from_time is not None else self.clock()
        return self.schedule_repository.get_upcoming(
            start, class_type_id=class_type_id, instructor_id=instructor_id, limit=limit
        )

    @BaseService.measure_operation("list_class_types")
    def list_class_types(self, active_only: bool = True) -> List[ClassType]:
        return self.class_type_repository.list_class_types(active_only=active_only)

    @BaseService.measure_operation("list_instructors")
    def list_instructors(self, active_only: bool = True) -> List[Instructor]:
        return self.instructor_repository.list_instructors(active_only=active_only)

    @BaseService.measure_operation("get_schedule_details")
    def get_schedule_details(self, schedule_id: str) -> ClassSchedule:
        schedule = self.schedule_repository.get_by_id(schedule_id)
        if schedule is None:
            raise ScheduleNotFoundException(schedule_id)
        return schedule

    @BaseService.measure_operation("list_materials")
    def list_materials(self, schedule_id: str, viewer: Profile) -> List[Material]:
        """
        Materials attached to a schedule, oldest first.

        Admins see every schedule's materials; other profiles only those of
        schedules they hold a non-cancelled booking on.

        Raises:
            ScheduleNotFoundException: Unknown schedule
            ForbiddenException: NOT_BOOKED
        """
        if self.schedule_repository.get_by_id(schedule_id, load_relationships=False) is None:
            raise ScheduleNotFoundException(schedule_id)
        if not viewer.is_admin and not self.booking_repository.has_attending_booking(
            viewer.id, schedule_id
        ):
            raise ForbiddenException(
                "Materials are available to booked attendees only",
                code="NOT_BOOKED",
                details={"class_schedule_id": schedule_id},
            )
        return self.material_repository.list_for_schedule(schedule_id)
