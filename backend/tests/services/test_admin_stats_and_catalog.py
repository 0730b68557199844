# backend/tests/services/test_admin_stats_and_catalog.py
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from classbook.core.exceptions import ForbiddenException, ScheduleNotFoundException
from classbook.services.admin_stats_service import AdminStatsService
from classbook.services.booking_service import BookingService
from classbook.services.catalog_service import CatalogService
from classbook.services.credit_purchase_service import CreditPurchaseService


class TestDashboardStats:
    def test_empty_database(self, db: Session, clock):
        stats = AdminStatsService(db, clock).get_dashboard_stats()

        assert stats.total_users == 0
        assert stats.total_bookings == 0
        assert stats.total_credits_issued == 0
        assert stats.total_revenue == Decimal("0")

    def test_counts_and_sums(self, db: Session, clock, now, make_profile, make_schedule):
        student = make_profile(credits=10)
        make_profile(credits=5)
        near_full = make_schedule(capacity=5, enrolled_count=3)
        make_schedule(capacity=10, enrolled_count=2)
        make_schedule(start_time=now - timedelta(days=1), capacity=5, enrolled_count=5)
        make_schedule(capacity=5, enrolled_count=5, is_active=False)

        BookingService(db, clock).create_booking(student.id, near_full.id)
        CreditPurchaseService(db, clock).purchase_credits(
            profile_id=student.id,
            credits_amount=5,
            package_type="starter",
            amount_paid="50.00",
            payment_method="4242",
        )

        stats = AdminStatsService(db, clock).get_dashboard_stats()

        assert stats.total_users == 2
        assert stats.total_bookings == 1
        assert stats.today_bookings == 1
        # 10 + 5 seeded grants plus a 5 credit purchase; payments are not issuance
        assert stats.total_credits_issued == 20
        assert stats.upcoming_classes == 2
        # 4/5 reaches the 0.8 threshold, 2/10 does not
        assert stats.near_capacity_classes == 1
        assert stats.total_revenue == Decimal("50.00")

    def test_custom_threshold(self, db: Session, clock, make_schedule):
        make_schedule(capacity=10, enrolled_count=5)

        service = AdminStatsService(db, clock)

        assert service.get_dashboard_stats(near_capacity_ratio=0.5).near_capacity_classes == 1
        assert service.get_dashboard_stats(near_capacity_ratio=0.6).near_capacity_classes == 0

    def test_bookings_before_midnight_are_not_today(self, db: Session, now, make_profile, make_schedule):
        student = make_profile(credits=10)
        schedule = make_schedule(start_time=now + timedelta(days=2))
        yesterday = now - timedelta(days=1)
        BookingService(db, clock=lambda: yesterday).create_booking(student.id, schedule.id)

        stats = AdminStatsService(db, clock=lambda: now).get_dashboard_stats()

        assert stats.total_bookings == 1
        assert stats.today_bookings == 0


class TestCatalog:
    def test_upcoming_classes_are_active_future_and_ordered(
        self, db: Session, clock, now, make_schedule, make_class_type
    ):
        later = make_schedule(start_time=now + timedelta(days=2))
        sooner = make_schedule(start_time=now + timedelta(hours=3))
        make_schedule(start_time=now - timedelta(hours=1))
        make_schedule(is_active=False)
        make_schedule(class_type=make_class_type(name="Retired", is_active=False))

        classes = CatalogService(db, clock).list_upcoming_classes()

        assert [schedule.id for schedule in classes] == [sooner.id, later.id]
        assert classes[0].class_type.name == "Test Yoga"
        assert classes[0].instructor.name == "Test Instructor"
        assert classes[0].spots_left == 10

    def test_upcoming_classes_filters(self, db: Session, clock, make_schedule, make_instructor):
        kim = make_instructor(name="Kim")
        mine = make_schedule(instructor=kim)
        other = make_schedule()

        service = CatalogService(db, clock)

        assert [s.id for s in service.list_upcoming_classes(instructor_id=kim.id)] == [mine.id]
        assert [s.id for s in service.list_upcoming_classes(class_type_id=other.class_type_id)] == [other.id]

    def test_class_types_and_instructors_active_only(self, db: Session, clock, make_class_type, make_instructor):
        make_class_type(name="Active")
        make_class_type(name="Hidden", is_active=False)
        make_instructor(name="Here")
        make_instructor(name="Gone", is_active=False)

        service = CatalogService(db, clock)

        assert [c.name for c in service.list_class_types()] == ["Active"]
        assert {c.name for c in service.list_class_types(active_only=False)} == {"Active", "Hidden"}
        assert [i.name for i in service.list_instructors()] == ["Here"]

    def test_schedule_details(self, db: Session, clock, make_schedule):
        schedule = make_schedule()
        service = CatalogService(db, clock)

        assert service.get_schedule_details(schedule.id).id == schedule.id
        with pytest.raises(ScheduleNotFoundException):
            service.get_schedule_details("missing")


class TestMaterials:
    def test_admin_sees_materials_oldest_first(self, db: Session, clock, test_admin, make_schedule, make_material):
        schedule = make_schedule()
        first = make_material(schedule)
        second = make_material(schedule)
        make_material(make_schedule())

        materials = CatalogService(db, clock).list_materials(schedule.id, test_admin)

        assert [m.id for m in materials] == [first.id, second.id]

    def test_booked_student_sees_materials(self, db: Session, clock, test_student, make_schedule, make_material):
        schedule = make_schedule()
        material = make_material(schedule)
        BookingService(db, clock).create_booking(test_student.id, schedule.id)

        materials = CatalogService(db, clock).list_materials(schedule.id, test_student)

        assert [m.id for m in materials] == [material.id]

    def test_cancelled_booking_loses_access(self, db: Session, clock, test_student, make_schedule, make_material):
        schedule = make_schedule()
        make_material(schedule)
        bookings = BookingService(db, clock)
        booking = bookings.create_booking(test_student.id, schedule.id)
        bookings.cancel_booking(booking.id, test_student.id)

        with pytest.raises(ForbiddenException) as exc_info:
            CatalogService(db, clock).list_materials(schedule.id, test_student)

        assert exc_info.value.code == "NOT_BOOKED"
        assert exc_info.value.details == {"class_schedule_id": schedule.id}

    def test_unbooked_student_is_refused(self, db: Session, clock, test_student, make_schedule):
        schedule = make_schedule()

        with pytest.raises(ForbiddenException):
            CatalogService(db, clock).list_materials(schedule.id, test_student)

    def test_unknown_schedule(self, db: Session, clock, test_admin):
        with pytest.raises(ScheduleNotFoundException):
            CatalogService(db, clock).list_materials("missing", test_admin)
