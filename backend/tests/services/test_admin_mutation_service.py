# backend/tests/services/test_admin_mutation_service.py
"""
Tests for AdminMutationService: catalog CRUD, class materials, schedule
defaults, capacity guard, and delete blocking / forced cascade with refunds.
"""

from datetime import timedelta

import pytest
from pydantic import TypeAdapter
from sqlalchemy.orm import Session

from classbook.core.enums import AdminAction, TransactionType
from classbook.core.exceptions import (
    BusinessRuleException,
    CapacityBelowEnrollmentException,
    ForbiddenException,
    HasDependentBookingsException,
    NotFoundException,
    ScheduleNotFoundException,
    ValidationException,
)
from classbook.core.timezone_utils import ensure_utc
from classbook.models.booking import Booking
from classbook.models.class_schedule import ClassSchedule
from classbook.models.class_type import ClassType
from classbook.models.credit_transaction import CreditTransaction
from classbook.models.instructor import Instructor
from classbook.models.material import Material
from classbook.schemas.admin import AdminMutation
from classbook.services.admin_mutation_service import AdminMutationService
from classbook.services.booking_service import BookingService
from classbook.services.credit_ledger_service import CreditLedgerService

mutation_adapter = TypeAdapter(AdminMutation)


def _mutation(**payload):
    return mutation_adapter.validate_python(payload)


@pytest.fixture
def admin_service(db: Session, clock) -> AdminMutationService:
    return AdminMutationService(db, clock)


class TestClassTypes:
    def test_create_with_defaults(self, db: Session, admin_service, test_admin):
        result = admin_service.apply(
            _mutation(entity="class_type", action="create", data={"name": "Spin"}), test_admin
        )

        assert result.entity == "class_type"
        assert result.action == AdminAction.CREATE
        assert result.record["name"] == "Spin"
        assert result.record["credit_cost"] == 1
        assert result.record["duration_minutes"] == 60
        assert db.get(ClassType, result.id) is not None

    @pytest.mark.parametrize(
        "data",
        [
            {"name": "Spin", "credit_cost": 0},
            {"name": "Spin", "duration_minutes": 10},
            {"name": "Spin", "duration_minutes": 181},
            {"name": "Spin", "max_capacity": 0},
            {"name": "   "},
            {"description": "no name"},
        ],
    )
    def test_create_rejects_invalid_values(self, db: Session, admin_service, test_admin, data):
        with pytest.raises(ValidationException):
            admin_service.apply(_mutation(entity="class_type", action="create", data=data), test_admin)
        assert db.query(ClassType).count() == 0

    def test_duration_bounds_are_inclusive(self, admin_service, test_admin):
        short = admin_service.apply(
            _mutation(entity="class_type", action="create", data={"name": "A", "duration_minutes": 15}),
            test_admin,
        )
        long = admin_service.apply(
            _mutation(entity="class_type", action="create", data={"name": "B", "duration_minutes": 180}),
            test_admin,
        )
        assert short.record["duration_minutes"] == 15
        assert long.record["duration_minutes"] == 180

    def test_update_changes_only_sent_fields(self, db: Session, admin_service, test_admin, make_class_type):
        class_type = make_class_type(name="Yoga", credit_cost=2)

        result = admin_service.apply(
            _mutation(
                entity="class_type", action="update", id=class_type.id, data={"credit_cost": 3}
            ),
            test_admin,
        )

        assert result.record["credit_cost"] == 3
        assert result.record["name"] == "Yoga"

    def test_update_missing_class_type(self, admin_service, test_admin):
        with pytest.raises(NotFoundException) as exc_info:
            admin_service.apply(
                _mutation(entity="class_type", action="update", id="missing", data={"name": "X"}),
                test_admin,
            )
        assert exc_info.value.code == "CLASS_TYPE_NOT_FOUND"

    def test_delete_without_bookings(self, db: Session, admin_service, test_admin, make_schedule):
        schedule = make_schedule()
        class_type_id = schedule.class_type_id

        result = admin_service.apply(
            _mutation(entity="class_type", action="delete", id=class_type_id), test_admin
        )

        assert result.deleted_schedules == 1
        assert result.deleted_bookings == 0
        db.expire_all()
        assert db.get(ClassType, class_type_id) is None
        assert db.query(ClassSchedule).count() == 0


class TestInstructors:
    def test_create_and_deactivate(self, db: Session, admin_service, test_admin):
        created = admin_service.apply(
            _mutation(
                entity="instructor",
                action="create",
                data={"name": "Kim", "specialties": ["pilates"]},
            ),
            test_admin,
        )
        assert created.record["specialties"] == ["pilates"]
        assert created.record["is_active"] is True

        updated = admin_service.apply(
            _mutation(entity="instructor", action="update", id=created.id, data={"is_active": False}),
            test_admin,
        )
        assert updated.record["is_active"] is False

    def test_null_is_active_leaves_flag_unchanged(self, admin_service, test_admin, make_instructor):
        instructor = make_instructor()

        result = admin_service.apply(
            _mutation(
                entity="instructor",
                action="update",
                id=instructor.id,
                data={"is_active": None, "bio": "New bio"},
            ),
            test_admin,
        )

        assert result.record["is_active"] is True
        assert result.record["bio"] == "New bio"

    def test_delete_missing_instructor(self, admin_service, test_admin):
        with pytest.raises(NotFoundException) as exc_info:
            admin_service.apply(_mutation(entity="instructor", action="delete", id="missing"), test_admin)
        assert exc_info.value.code == "INSTRUCTOR_NOT_FOUND"


class TestSchedules:
    def test_create_defaults_capacity_and_end_time(
        self, admin_service, test_admin, make_class_type, make_instructor, now
    ):
        class_type = make_class_type(duration_minutes=45, max_capacity=12)
        instructor = make_instructor()
        start = now + timedelta(days=2)

        result = admin_service.apply(
            _mutation(
                entity="class_schedule",
                action="create",
                data={
                    "class_type_id": class_type.id,
                    "instructor_id": instructor.id,
                    "start_time": start.isoformat(),
                },
            ),
            test_admin,
        )

        assert result.record["capacity"] == 12
        assert result.record["enrolled_count"] == 0
        assert result.record["spots_left"] == 12
        assert result.record["is_active"] is True

    def test_create_end_time_follows_duration(
        self, db: Session, admin_service, test_admin, make_class_type, make_instructor, now
    ):
        class_type = make_class_type(duration_minutes=45)
        start = now + timedelta(days=2)

        result = admin_service.apply(
            _mutation(
                entity="class_schedule",
                action="create",
                data={
                    "class_type_id": class_type.id,
                    "instructor_id": make_instructor().id,
                    "start_time": start.isoformat(),
                },
            ),
            test_admin,
        )

        schedule = db.get(ClassSchedule, result.id)
        assert ensure_utc(schedule.end_time) - ensure_utc(schedule.start_time) == timedelta(minutes=45)

    def test_enrolled_count_is_not_writable(self, test_admin):
        with pytest.raises(ValueError):
            _mutation(
                entity="class_schedule",
                action="update",
                id="x",
                data={"enrolled_count": 5},
            )

    def test_create_requires_active_instructor(
        self, admin_service, test_admin, make_class_type, make_instructor, now
    ):
        with pytest.raises(BusinessRuleException) as exc_info:
            admin_service.apply(
                _mutation(
                    entity="class_schedule",
                    action="create",
                    data={
                        "class_type_id": make_class_type().id,
                        "instructor_id": make_instructor(is_active=False).id,
                        "start_time": (now + timedelta(days=1)).isoformat(),
                    },
                ),
                test_admin,
            )
        assert exc_info.value.code == "INSTRUCTOR_INACTIVE"

    def test_create_requires_existing_class_type(self, admin_service, test_admin, make_instructor, now):
        with pytest.raises(NotFoundException) as exc_info:
            admin_service.apply(
                _mutation(
                    entity="class_schedule",
                    action="create",
                    data={
                        "class_type_id": "missing",
                        "instructor_id": make_instructor().id,
                        "start_time": (now + timedelta(days=1)).isoformat(),
                    },
                ),
                test_admin,
            )
        assert exc_info.value.code == "CLASS_TYPE_NOT_FOUND"

    def test_end_before_start_is_rejected(self, admin_service, test_admin, make_schedule, now):
        schedule = make_schedule()

        with pytest.raises(ValidationException):
            admin_service.apply(
                _mutation(
                    entity="class_schedule",
                    action="update",
                    id=schedule.id,
                    data={"end_time": (now - timedelta(days=1)).isoformat()},
                ),
                test_admin,
            )

    def test_capacity_cannot_drop_below_enrollment(self, db: Session, admin_service, test_admin, make_schedule):
        schedule = make_schedule(capacity=5, enrolled_count=3)

        with pytest.raises(CapacityBelowEnrollmentException):
            admin_service.apply(
                _mutation(entity="class_schedule", action="update", id=schedule.id, data={"capacity": 2}),
                test_admin,
            )

        result = admin_service.apply(
            _mutation(entity="class_schedule", action="update", id=schedule.id, data={"capacity": 3}),
            test_admin,
        )
        assert result.record["capacity"] == 3
        assert result.record["spots_left"] == 0

    def test_update_missing_schedule(self, admin_service, test_admin):
        with pytest.raises(ScheduleNotFoundException):
            admin_service.apply(
                _mutation(entity="class_schedule", action="update", id="missing", data={"notes": "x"}),
                test_admin,
            )


class TestMaterials:
    def test_create_strips_and_stamps(self, db: Session, admin_service, test_admin, make_schedule, now):
        schedule = make_schedule()

        result = admin_service.apply(
            _mutation(
                entity="material",
                action="create",
                data={
                    "class_schedule_id": schedule.id,
                    "title": "  Warm-up sheet ",
                    "url": " https://files.example.com/warmup.pdf ",
                },
            ),
            test_admin,
        )

        assert result.entity == "material"
        assert result.record["title"] == "Warm-up sheet"
        assert result.record["url"] == "https://files.example.com/warmup.pdf"
        stored = db.get(Material, result.id)
        assert stored.class_schedule_id == schedule.id
        assert ensure_utc(stored.created_at) == now

    @pytest.mark.parametrize(
        "data,field",
        [
            ({"title": "Notes", "url": "https://x.example/notes"}, "class_schedule_id"),
            ({"title": "   ", "url": "https://x.example/notes"}, "title"),
            ({"title": "Notes", "url": ""}, "url"),
        ],
    )
    def test_create_requires_every_field(self, db: Session, admin_service, test_admin, make_schedule, data, field):
        schedule = make_schedule()
        if field != "class_schedule_id":
            data = {**data, "class_schedule_id": schedule.id}

        with pytest.raises(ValidationException) as exc_info:
            admin_service.apply(_mutation(entity="material", action="create", data=data), test_admin)

        assert exc_info.value.code == "VALIDATION_ERROR"
        assert db.query(Material).count() == 0

    def test_create_for_missing_schedule(self, admin_service, test_admin):
        with pytest.raises(ScheduleNotFoundException):
            admin_service.apply(
                _mutation(
                    entity="material",
                    action="create",
                    data={"class_schedule_id": "missing", "title": "Notes", "url": "https://x.example/n"},
                ),
                test_admin,
            )

    def test_update_is_not_supported(self, admin_service, test_admin, make_schedule, make_material):
        material = make_material(make_schedule())

        with pytest.raises(ValidationException) as exc_info:
            admin_service.apply(
                _mutation(entity="material", action="update", id=material.id, data={"title": "New"}),
                test_admin,
            )
        assert exc_info.value.details["entity"] == "material"

    def test_delete(self, db: Session, admin_service, test_admin, make_schedule, make_material):
        schedule = make_schedule()
        doomed = make_material(schedule)
        kept = make_material(schedule)

        result = admin_service.apply(_mutation(entity="material", action="delete", id=doomed.id), test_admin)

        assert result.id == doomed.id
        db.expire_all()
        assert db.get(Material, doomed.id) is None
        assert db.get(Material, kept.id) is not None
        assert db.get(ClassSchedule, schedule.id) is not None

    def test_delete_missing_material(self, admin_service, test_admin):
        with pytest.raises(NotFoundException) as exc_info:
            admin_service.apply(_mutation(entity="material", action="delete", id="missing"), test_admin)
        assert exc_info.value.code == "MATERIAL_NOT_FOUND"

    def test_schedule_delete_removes_its_materials(
        self, db: Session, admin_service, test_admin, make_schedule, make_material
    ):
        schedule = make_schedule()
        other = make_schedule()
        make_material(schedule)
        make_material(schedule)
        survivor = make_material(other)

        result = admin_service.apply(
            _mutation(entity="class_schedule", action="delete", id=schedule.id), test_admin
        )

        assert result.deleted_materials == 2
        db.expire_all()
        assert [m.id for m in db.query(Material).all()] == [survivor.id]


class TestDeleteWithBookings:
    @pytest.fixture
    def booked_schedule(self, db: Session, clock, make_profile, make_schedule):
        schedule = make_schedule(capacity=5)
        students = [make_profile(credits=10) for _ in range(2)]
        booking_service = BookingService(db, clock)
        bookings = [booking_service.create_booking(student.id, schedule.id) for student in students]
        booking_service.cancel_booking(bookings[1].id, students[1].id)
        return schedule, students, bookings

    def test_delete_blocked_without_force(self, db: Session, admin_service, test_admin, booked_schedule):
        schedule, _, _ = booked_schedule

        with pytest.raises(HasDependentBookingsException) as exc_info:
            admin_service.apply(
                _mutation(entity="class_schedule", action="delete", id=schedule.id), test_admin
            )

        assert exc_info.value.details["booking_count"] == 2
        db.expire_all()
        assert db.get(ClassSchedule, schedule.id) is not None

    def test_class_type_delete_blocked_by_schedule_bookings(self, admin_service, test_admin, booked_schedule):
        schedule, _, _ = booked_schedule

        with pytest.raises(HasDependentBookingsException):
            admin_service.apply(
                _mutation(entity="class_type", action="delete", id=schedule.class_type_id), test_admin
            )

    def test_forced_delete_refunds_confirmed_bookings(
        self, db: Session, admin_service, test_admin, booked_schedule
    ):
        schedule, students, bookings = booked_schedule

        result = admin_service.apply(
            _mutation(entity="instructor", action="delete", id=schedule.instructor_id, force=True),
            test_admin,
        )

        assert result.refunded_bookings == 1
        assert result.deleted_bookings == 2
        assert result.deleted_schedules == 1
        db.expire_all()
        assert db.get(Instructor, schedule.instructor_id) is None
        assert db.query(Booking).count() == 0

        ledger = CreditLedgerService(db)
        for student in students:
            check = ledger.verify_balance(student.id)
            assert check["credit_balance"] == 10
            assert check["consistent"] is True

        refund = (
            db.query(CreditTransaction)
            .filter(
                CreditTransaction.booking_id == bookings[0].id,
                CreditTransaction.transaction_type == TransactionType.BOOKING_REFUND.value,
            )
            .one()
        )
        assert refund.admin_user_id == test_admin.id

    def test_forced_class_type_delete_removes_materials(
        self, db: Session, admin_service, test_admin, booked_schedule, make_material
    ):
        schedule, _, _ = booked_schedule
        make_material(schedule)

        result = admin_service.apply(
            _mutation(entity="class_type", action="delete", id=schedule.class_type_id, force=True),
            test_admin,
        )

        assert result.deleted_materials == 1
        assert result.deleted_schedules == 1
        db.expire_all()
        assert db.query(Material).count() == 0
        assert db.get(ClassType, schedule.class_type_id) is None


def test_non_admin_cannot_mutate(admin_service, make_profile):
    student = make_profile()

    with pytest.raises(ForbiddenException) as exc_info:
        admin_service.apply(
            _mutation(entity="class_type", action="create", data={"name": "Spin"}), student
        )
    assert exc_info.value.code == "ADMIN_REQUIRED"


def test_failed_mutation_rolls_back(db: Session, admin_service, test_admin, make_schedule):
    schedule = make_schedule(capacity=5, enrolled_count=4)

    with pytest.raises(CapacityBelowEnrollmentException):
        admin_service.apply(
            _mutation(
                entity="class_schedule",
                action="update",
                id=schedule.id,
                data={"notes": "moved", "capacity": 1},
            ),
            test_admin,
        )

    db.expire_all()
    stored = db.get(ClassSchedule, schedule.id)
    assert stored.notes is None
    assert stored.capacity == 5
