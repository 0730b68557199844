# backend/classbook/services/admin_mutation_service.py
"""
Administrative writes for class types, instructors, schedules and class materials.

``apply`` dispatches one ``AdminMutation`` variant. Deletes are blocked while
bookings exist; ``force=True`` refunds every confirmed booking through the
credit ledger, then removes bookings, materials, schedules and the entity in
the same transaction so the ledger keeps a complete history.
"""

from datetime import datetime, timedelta
import logging
from typing import Any, Callable, Dict, List, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import AdminAction, AdminEntity, TransactionType
from ..core.exceptions import (
    BusinessRuleException,
    CapacityBelowEnrollmentException,
    ForbiddenException,
    HasDependentBookingsException,
    NotFoundException,
    ScheduleNotFoundException,
    ValidationException,
)
from ..core.timezone_utils import Clock, ensure_utc, utc_now
from ..models.class_type import ClassType
from ..models.instructor import Instructor
from ..models.profile import Profile
from ..repositories.factory import RepositoryFactory
from ..schemas.admin import (
    AdminMutationResult,
    ClassScheduleMutation,
    ClassTypeMutation,
    InstructorMutation,
    MaterialMutation,
)
from ..schemas.catalog import (
    ClassScheduleResponse,
    ClassTypeResponse,
    InstructorResponse,
    MaterialResponse,
)
from .base import BaseService
from .credit_ledger_service import CreditLedgerService

logger = logging.getLogger(__name__)

REQUIRED_CLASS_TYPE_FIELDS = ("name",)
REQUIRED_INSTRUCTOR_FIELDS = ("name",)
REQUIRED_SCHEDULE_FIELDS = ("class_type_id", "instructor_id", "start_time")
REQUIRED_MATERIAL_FIELDS = ("class_schedule_id", "title", "url")
NON_NULLABLE_FLAGS = ("is_active",)


def _without_nulls(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


def _drop_nulls(fields: Dict[str, Any], keys: Tuple[str, ...]) -> None:
    """An explicit null on a NOT NULL flag means "leave unchanged"."""
    for key in keys:
        if key in fields and fields[key] is None:
            del fields[key]


class AdminMutationService(BaseService):
    def __init__(self, db: Session, clock: Clock = utc_now):
        super().__init__(db, clock)
        self.class_type_repository = RepositoryFactory.create_class_type_repository(db)
        self.instructor_repository = RepositoryFactory.create_instructor_repository(db)
        self.schedule_repository = RepositoryFactory.create_schedule_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.material_repository = RepositoryFactory.create_material_repository(db)
        self.ledger_service = CreditLedgerService(db, clock)

    @BaseService.measure_operation("apply_admin_mutation")
    def apply(self, mutation: Any, actor: Profile) -> AdminMutationResult:
        """
        Apply one admin mutation.

        Raises:
            ForbiddenException: ADMIN_REQUIRED
            ValidationException: Field values out of bounds
            NotFoundException: Target (or referenced) record missing
            HasDependentBookingsException: Delete blocked by bookings
            CapacityBelowEnrollmentException: Capacity lowered under enrollment
        """
        if not actor.is_admin:
            raise ForbiddenException("Admin access required", code="ADMIN_REQUIRED")

        handlers: Dict[Tuple[type, AdminAction], Callable[..., AdminMutationResult]] = {
            (ClassTypeMutation, AdminAction.CREATE): self._create_class_type,
            (ClassTypeMutation, AdminAction.UPDATE): self._update_class_type,
            (ClassTypeMutation, AdminAction.DELETE): self._delete_class_type,
            (InstructorMutation, AdminAction.CREATE): self._create_instructor,
            (InstructorMutation, AdminAction.UPDATE): self._update_instructor,
            (InstructorMutation, AdminAction.DELETE): self._delete_instructor,
            (ClassScheduleMutation, AdminAction.CREATE): self._create_schedule,
            (ClassScheduleMutation, AdminAction.UPDATE): self._update_schedule,
            (ClassScheduleMutation, AdminAction.DELETE): self._delete_schedule,
            (MaterialMutation, AdminAction.CREATE): self._create_material,
            (MaterialMutation, AdminAction.DELETE): self._delete_material,
        }
        handler = handlers.get((type(mutation), mutation.action))
        if handler is None:
            raise ValidationException(
                "Unsupported admin mutation",
                details={"entity": getattr(mutation, "entity", None)},
            )

        with self.transaction():
            result = handler(mutation, actor)

        self.log_operation(
            "apply_admin_mutation",
            entity=result.entity,
            action=result.action.value,
            target_id=result.id,
            actor_id=actor.id,
            refunded_bookings=result.refunded_bookings,
        )
        return result

    # Validation helpers

    @staticmethod
    def _require(fields: Dict[str, Any], names: Tuple[str, ...]) -> None:
        missing = [name for name in names if fields.get(name) in (None, "")]
        if missing:
            raise ValidationException(
                f"Missing required fields: {', '.join(missing)}", details={"fields": missing}
            )

    @staticmethod
    def _validate_class_type_values(fields: Dict[str, Any]) -> None:
        if "name" in fields and not (fields["name"] or "").strip():
            raise ValidationException("Name cannot be empty", details={"field": "name"})
        if "credit_cost" in fields and (fields["credit_cost"] is None or fields["credit_cost"] < 1):
            raise ValidationException(
                "credit_cost must be at least 1", details={"credit_cost": fields["credit_cost"]}
            )
        if "duration_minutes" in fields:
            duration = fields["duration_minutes"]
            low = settings.min_class_duration_minutes
            high = settings.max_class_duration_minutes
            if duration is None or not low <= duration <= high:
                raise ValidationException(
                    f"duration_minutes must be between {low} and {high}",
                    details={"duration_minutes": duration},
                )
        if "max_capacity" in fields and (
            fields["max_capacity"] is None or fields["max_capacity"] < 1
        ):
            raise ValidationException(
                "max_capacity must be at least 1",
                details={"max_capacity": fields["max_capacity"]},
            )

    @staticmethod
    def _validate_schedule_times(start_time: datetime, end_time: datetime) -> None:
        if end_time <= start_time:
            raise ValidationException(
                "end_time must be after start_time",
                details={"start_time": str(start_time), "end_time": str(end_time)},
            )

    # Class types

    def _create_class_type(self, mutation: ClassTypeMutation, actor: Profile) -> AdminMutationResult:
        fields = _without_nulls(mutation.changes())
        self._require(fields, REQUIRED_CLASS_TYPE_FIELDS)
        fields.setdefault("credit_cost", 1)
        fields.setdefault("duration_minutes", 60)
        fields.setdefault("max_capacity", 20)
        self._validate_class_type_values(fields)
        class_type = self.class_type_repository.create(**fields)
        return self._result(mutation, class_type.id, ClassTypeResponse, class_type)

    def _update_class_type(self, mutation: ClassTypeMutation, actor: Profile) -> AdminMutationResult:
        fields = mutation.changes()
        _drop_nulls(fields, NON_NULLABLE_FLAGS)
        self._validate_class_type_values(fields)
        class_type = self.class_type_repository.update(mutation.id, **fields)
        if class_type is None:
            raise self._not_found(AdminEntity.CLASS_TYPE, mutation.id)
        return self._result(mutation, class_type.id, ClassTypeResponse, class_type)

    def _delete_class_type(self, mutation: ClassTypeMutation, actor: Profile) -> AdminMutationResult:
        if self.class_type_repository.get_by_id(mutation.id, load_relationships=False) is None:
            raise self._not_found(AdminEntity.CLASS_TYPE, mutation.id)
        schedule_ids = self.schedule_repository.list_ids_for_class_type(mutation.id)
        return self._delete_with_schedules(
            mutation, AdminEntity.CLASS_TYPE, schedule_ids, actor,
            lambda: self.class_type_repository.delete(mutation.id),
        )

    # Instructors

    def _create_instructor(self, mutation: InstructorMutation, actor: Profile) -> AdminMutationResult:
        fields = _without_nulls(mutation.changes())
        self._require(fields, REQUIRED_INSTRUCTOR_FIELDS)
        if fields.get("specialties") is None:
            fields["specialties"] = []
        instructor = self.instructor_repository.create(**fields)
        return self._result(mutation, instructor.id, InstructorResponse, instructor)

    def _update_instructor(self, mutation: InstructorMutation, actor: Profile) -> AdminMutationResult:
        fields = mutation.changes()
        _drop_nulls(fields, NON_NULLABLE_FLAGS)
        if "name" in fields and not (fields["name"] or "").strip():
            raise ValidationException("Name cannot be empty", details={"field": "name"})
        if "specialties" in fields and fields["specialties"] is None:
            fields["specialties"] = []
        instructor = self.instructor_repository.update(mutation.id, **fields)
        if instructor is None:
            raise self._not_found(AdminEntity.INSTRUCTOR, mutation.id)
        return self._result(mutation, instructor.id, InstructorResponse, instructor)

    def _delete_instructor(self, mutation: InstructorMutation, actor: Profile) -> AdminMutationResult:
        if self.instructor_repository.get_by_id(mutation.id, load_relationships=False) is None:
            raise self._not_found(AdminEntity.INSTRUCTOR, mutation.id)
        schedule_ids = self.schedule_repository.list_ids_for_instructor(mutation.id)
        return self._delete_with_schedules(
            mutation, AdminEntity.INSTRUCTOR, schedule_ids, actor,
            lambda: self.instructor_repository.delete(mutation.id),
        )

    # Schedules

    def _load_class_type(self, class_type_id: str) -> ClassType:
        class_type = self.class_type_repository.get_by_id(class_type_id, load_relationships=False)
        if class_type is None:
            raise self._not_found(AdminEntity.CLASS_TYPE, class_type_id)
        return class_type

    def _load_active_instructor(self, instructor_id: str) -> Instructor:
        instructor = self.instructor_repository.get_by_id(instructor_id, load_relationships=False)
        if instructor is None:
            raise self._not_found(AdminEntity.INSTRUCTOR, instructor_id)
        if not instructor.is_active:
            raise BusinessRuleException(
                "Instructor is not active",
                code="INSTRUCTOR_INACTIVE",
                details={"instructor_id": instructor_id},
            )
        return instructor

    def _create_schedule(
        self, mutation: ClassScheduleMutation, actor: Profile
    ) -> AdminMutationResult:
        fields = mutation.changes()
        self._require(fields, REQUIRED_SCHEDULE_FIELDS)
        class_type = self._load_class_type(fields["class_type_id"])
        self._load_active_instructor(fields["instructor_id"])

        start_time = ensure_utc(fields["start_time"])
        end_time = ensure_utc(fields.get("end_time")) or start_time + timedelta(
            minutes=class_type.duration_minutes
        )
        self._validate_schedule_times(start_time, end_time)

        capacity = fields.get("capacity")
        if capacity is None:
            capacity = class_type.max_capacity
        if capacity < 1:
            raise ValidationException("capacity must be at least 1", details={"capacity": capacity})

        schedule = self.schedule_repository.create(
            class_type_id=class_type.id,
            instructor_id=fields["instructor_id"],
            start_time=start_time,
            end_time=end_time,
            capacity=capacity,
            enrolled_count=0,
            is_active=fields.get("is_active") is not False,
            notes=fields.get("notes"),
        )
        return self._result(mutation, schedule.id, ClassScheduleResponse, schedule)

    def _update_schedule(
        self, mutation: ClassScheduleMutation, actor: Profile
    ) -> AdminMutationResult:
        fields = mutation.changes()
        _drop_nulls(fields, NON_NULLABLE_FLAGS)
        schedule = self.schedule_repository.get_for_update(mutation.id)
        if schedule is None:
            raise ScheduleNotFoundException(mutation.id)

        if "class_type_id" in fields and fields["class_type_id"] != schedule.class_type_id:
            self._load_class_type(fields["class_type_id"])
        if "instructor_id" in fields and fields["instructor_id"] != schedule.instructor_id:
            self._load_active_instructor(fields["instructor_id"])

        for key in ("start_time", "end_time"):
            if key in fields:
                if fields[key] is None:
                    raise ValidationException(f"{key} cannot be cleared", details={"field": key})
                fields[key] = ensure_utc(fields[key])
        self._validate_schedule_times(
            fields.get("start_time", ensure_utc(schedule.start_time)),
            fields.get("end_time", ensure_utc(schedule.end_time)),
        )

        if "capacity" in fields:
            capacity = fields["capacity"]
            if capacity is None or capacity < 1:
                raise ValidationException(
                    "capacity must be at least 1", details={"capacity": capacity}
                )
            if capacity < schedule.enrolled_count:
                raise CapacityBelowEnrollmentException(
                    schedule.id, capacity, schedule.enrolled_count
                )

        for key, value in fields.items():
            setattr(schedule, key, value)
        self.schedule_repository.flush()
        return self._result(mutation, schedule.id, ClassScheduleResponse, schedule)

    def _delete_schedule(
        self, mutation: ClassScheduleMutation, actor: Profile
    ) -> AdminMutationResult:
        if self.schedule_repository.get_by_id(mutation.id, load_relationships=False) is None:
            raise ScheduleNotFoundException(mutation.id)
        return self._delete_with_schedules(
            mutation, AdminEntity.CLASS_SCHEDULE, [mutation.id], actor, lambda: True
        )

    # Materials

    def _create_material(self, mutation: MaterialMutation, actor: Profile) -> AdminMutationResult:
        fields = _without_nulls(mutation.changes())
        self._require(fields, REQUIRED_MATERIAL_FIELDS)
        for key in ("title", "url"):
            fields[key] = fields[key].strip()
            if not fields[key]:
                raise ValidationException(f"{key} cannot be empty", details={"field": key})
        if self.schedule_repository.get_by_id(
            fields["class_schedule_id"], load_relationships=False
        ) is None:
            raise ScheduleNotFoundException(fields["class_schedule_id"])
        material = self.material_repository.create(created_at=self.clock(), **fields)
        return self._result(mutation, material.id, MaterialResponse, material)

    def _delete_material(self, mutation: MaterialMutation, actor: Profile) -> AdminMutationResult:
        if not self.material_repository.delete(mutation.id):
            raise self._not_found(AdminEntity.MATERIAL, mutation.id)
        return AdminMutationResult(entity=mutation.entity, action=mutation.action, id=mutation.id)

    # Shared delete path

    def _delete_with_schedules(
        self,
        mutation: Any,
        entity: AdminEntity,
        schedule_ids: List[str],
        actor: Profile,
        delete_entity: Callable[[], bool],
    ) -> AdminMutationResult:
        booking_count = self.booking_repository.count_for_schedules(schedule_ids)
        if booking_count and not mutation.force:
            raise HasDependentBookingsException(entity.value, mutation.id, booking_count)

        refunded = 0
        for booking in self.booking_repository.get_confirmed_for_schedules(schedule_ids):
            if booking.credits_used > 0:
                self.ledger_service.apply_credit_delta(
                    profile_id=booking.profile_id,
                    amount=booking.credits_used,
                    transaction_type=TransactionType.BOOKING_REFUND,
                    description=f"Refund: {entity.value.replace('_', ' ')} removed",
                    booking_id=booking.id,
                    admin_user_id=actor.id,
                    use_transaction=False,
                )
            refunded += 1

        deleted_bookings = self.booking_repository.delete_for_schedules(schedule_ids)
        deleted_materials = self.material_repository.delete_for_schedules(schedule_ids)
        deleted_schedules = self.schedule_repository.delete_many(schedule_ids)
        delete_entity()

        return AdminMutationResult(
            entity=mutation.entity,
            action=mutation.action,
            id=mutation.id,
            refunded_bookings=refunded,
            deleted_bookings=deleted_bookings,
            deleted_schedules=deleted_schedules,
            deleted_materials=deleted_materials,
        )

    @staticmethod
    def _not_found(entity: AdminEntity, entity_id: str) -> NotFoundException:
        return NotFoundException(
            f"{entity.value.replace('_', ' ').capitalize()} not found",
            code=f"{entity.value.upper()}_NOT_FOUND",
            details={"id": entity_id},
        )

    @staticmethod
    def _result(mutation: Any, entity_id: str, response_model: Any, record: Any) -> AdminMutationResult:
        return AdminMutationResult(
            entity=mutation.entity,
            action=mutation.action,
            id=entity_id,
            record=response_model.model_validate(record).model_dump(mode="json"),
        )
