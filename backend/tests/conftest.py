# backend/tests/conftest.py
"""
Pytest configuration.

Every test gets a fresh schema on a file-backed SQLite database, so the
same BEGIN IMMEDIATE locking the app uses in development is exercised here,
including from several threads at once.
"""

import os
from pathlib import Path
import sys
import tempfile

# Set testing mode BEFORE any classbook imports
_TEST_DB_DIR = tempfile.mkdtemp(prefix="classbook-tests-")
TEST_DATABASE_URL = f"sqlite:///{Path(_TEST_DB_DIR) / 'classbook_test.db'}"
os.environ["IS_TESTING"] = "true"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["TEST_DATABASE_URL"] = TEST_DATABASE_URL
os.environ.setdefault("SIGNUP_CREDIT_GRANT", "10")
os.environ.setdefault("CANCELLATION_WINDOW_HOURS", "2")

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, backend_dir)

from datetime import datetime, timedelta, timezone
import itertools
from typing import Callable, Dict, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session, sessionmaker
import ulid

from classbook.api.dependencies import database as database_dependencies
from classbook.auth import create_access_token
from classbook.core.enums import RoleName, TransactionType
from classbook.database import Base, create_engine_for_url, get_db
from classbook.main import app
from classbook.models import ClassSchedule, ClassType, CreditTransaction, Instructor, Material, Profile

test_engine = create_engine_for_url(TEST_DATABASE_URL)
TestSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=test_engine, expire_on_commit=False
)

# Fixed "now" for time-dependent tests
FIXED_NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Clock pinned to FIXED_NOW for services under test."""
    return fixed_clock


@pytest.fixture
def ticking_clock() -> Callable[[], datetime]:
    """Clock starting at FIXED_NOW that advances one second per call."""
    ticks = itertools.count()
    return lambda: FIXED_NOW + timedelta(seconds=next(ticks))


@pytest.fixture
def session_factory() -> sessionmaker:
    """Session factory bound to the test database, for tests that need their own sessions."""
    return TestSessionLocal


@pytest.fixture(scope="function")
def db():
    """Create the schema, yield a session, drop everything afterwards."""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db: Session):
    """Create a test client bound to the test session."""

    def override_get_db():
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[database_dependencies.get_db] = override_get_db

    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


# ============================================================================
# FACTORIES
# ============================================================================


def _grant(db: Session, profile: Profile, credits: int) -> None:
    """Seed a balance together with its ledger entry."""
    if credits <= 0:
        return
    profile.credit_balance += credits
    db.add(
        CreditTransaction(
            profile_id=profile.id,
            amount=credits,
            transaction_type=TransactionType.CREDIT_ADDED.value,
            description="Test credits",
            balance_after=profile.credit_balance,
            created_at=FIXED_NOW - timedelta(days=30),
        )
    )


@pytest.fixture
def make_profile(db: Session) -> Callable[..., Profile]:
    def _make(
        credits: int = 10,
        role: RoleName = RoleName.STUDENT,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
        full_name: str = "Test Student",
    ) -> Profile:
        user_id = user_id or f"user_{ulid.ULID()}"
        profile = Profile(
            user_id=user_id,
            email=email or f"{user_id.lower()}@example.com",
            full_name=full_name,
            role=role.value,
            credit_balance=0,
        )
        db.add(profile)
        db.flush()
        _grant(db, profile, credits)
        db.commit()
        return profile

    return _make


@pytest.fixture
def make_class_type(db: Session) -> Callable[..., ClassType]:
    def _make(
        name: str = "Test Yoga",
        credit_cost: int = 2,
        duration_minutes: int = 60,
        max_capacity: int = 10,
        is_active: bool = True,
    ) -> ClassType:
        class_type = ClassType(
            name=name,
            description="A test class",
            credit_cost=credit_cost,
            duration_minutes=duration_minutes,
            max_capacity=max_capacity,
            is_active=is_active,
        )
        db.add(class_type)
        db.commit()
        return class_type

    return _make


@pytest.fixture
def make_instructor(db: Session) -> Callable[..., Instructor]:
    def _make(name: str = "Test Instructor", is_active: bool = True) -> Instructor:
        instructor = Instructor(
            name=name, bio="Teaches tests", specialties=["yoga"], is_active=is_active
        )
        db.add(instructor)
        db.commit()
        return instructor

    return _make


@pytest.fixture
def make_schedule(
    db: Session,
    make_class_type: Callable[..., ClassType],
    make_instructor: Callable[..., Instructor],
) -> Callable[..., ClassSchedule]:
    def _make(
        class_type: Optional[ClassType] = None,
        instructor: Optional[Instructor] = None,
        start_time: Optional[datetime] = None,
        capacity: int = 10,
        enrolled_count: int = 0,
        is_active: bool = True,
    ) -> ClassSchedule:
        class_type = class_type or make_class_type()
        instructor = instructor or make_instructor()
        start_time = start_time or FIXED_NOW + timedelta(days=1)
        schedule = ClassSchedule(
            class_type_id=class_type.id,
            instructor_id=instructor.id,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=class_type.duration_minutes),
            capacity=capacity,
            enrolled_count=enrolled_count,
            is_active=is_active,
        )
        db.add(schedule)
        db.commit()
        return schedule

    return _make


@pytest.fixture
def make_material(db: Session) -> Callable[..., Material]:
    counter = itertools.count(1)

    def _make(schedule: ClassSchedule, title: Optional[str] = None) -> Material:
        n = next(counter)
        material = Material(
            class_schedule_id=schedule.id,
            title=title or f"Handout {n}",
            url=f"https://files.example.com/handout-{n}.pdf",
            created_at=FIXED_NOW - timedelta(days=1) + timedelta(minutes=n),
        )
        db.add(material)
        db.commit()
        return material

    return _make


@pytest.fixture
def test_student(make_profile: Callable[..., Profile]) -> Profile:
    return make_profile(credits=10, full_name="Sam Student")


@pytest.fixture
def test_admin(make_profile: Callable[..., Profile]) -> Profile:
    return make_profile(credits=0, role=RoleName.ADMIN, full_name="Ada Admin")


@pytest.fixture
def future_schedule(make_schedule: Callable[..., ClassSchedule]) -> ClassSchedule:
    """A schedule starting a day after now, so route tests using the real clock can book it."""
    return make_schedule(start_time=datetime.now(timezone.utc) + timedelta(days=1))


def auth_headers_for(profile: Profile) -> Dict[str, str]:
    token = create_access_token(data={"sub": profile.user_id, "email": profile.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers_student(test_student: Profile) -> dict:
    """Get auth headers for test student."""
    return auth_headers_for(test_student)


@pytest.fixture
def auth_headers_admin(test_admin: Profile) -> dict:
    """Get auth headers for test admin."""
    return auth_headers_for(test_admin)


@pytest.fixture
def auth_headers() -> Callable[[Profile], Dict[str, str]]:
    """Build bearer headers for any profile."""
    return auth_headers_for
