# backend/classbook/init_db.py
"""
Create the database schema and optionally load a demo catalog.

Usage:
    python -m classbook.init_db
    python -m classbook.init_db --seed seed_data/catalog.yaml

The seed file is YAML with three lists:

    class_types:  [{name, description, credit_cost, duration_minutes, max_capacity}]
    instructors:  [{name, bio, specialties, email}]
    schedules:    [{class_type, instructor, day_offset, start, capacity?}]

``start`` is ``HH:MM`` in UTC on the day ``day_offset`` days after the
seeding day. Class types and instructors are matched by name, so running the
seed twice does not create duplicates.
"""

import argparse
from datetime import timedelta
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
import yaml

from . import models  # noqa: F401
from .core.timezone_utils import Clock, start_of_utc_day, utc_now
from .database import Base, SessionLocal, engine as default_engine
from .models import ClassType, Instructor
from .repositories.factory import RepositoryFactory

logger = logging.getLogger(__name__)


def init_db(bind: Optional[Engine] = None) -> None:
    """Create every table known to the ORM metadata."""
    target = bind or default_engine
    Base.metadata.create_all(bind=target)
    logger.info(f"Created {len(Base.metadata.tables)} tables on {target.url.render_as_string()}")


def load_seed_file(path: Path) -> Dict[str, Any]:
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Seed file {path} must contain a mapping at the top level")
    return data


def _parse_start(value: str) -> timedelta:
    hours, minutes = str(value).split(":", 1)
    return timedelta(hours=int(hours), minutes=int(minutes))


def seed_catalog(db: Session, seed_path: Path, clock: Clock = utc_now) -> Dict[str, int]:
    """
    Load class types, instructors and schedules from a YAML file.

    Returns:
        Counts of rows created per table
    """
    data = load_seed_file(seed_path)
    class_type_repository = RepositoryFactory.create_class_type_repository(db)
    instructor_repository = RepositoryFactory.create_instructor_repository(db)
    schedule_repository = RepositoryFactory.create_schedule_repository(db)
    stats = {"class_types": 0, "instructors": 0, "schedules": 0}

    class_types: Dict[str, ClassType] = {}
    for item in data.get("class_types", []):
        existing = class_type_repository.find_one_by(name=item["name"])
        if existing is None:
            existing = class_type_repository.create(**item)
            stats["class_types"] += 1
        class_types[existing.name] = existing

    instructors: Dict[str, Instructor] = {}
    for item in data.get("instructors", []):
        existing = instructor_repository.find_one_by(name=item["name"])
        if existing is None:
            existing = instructor_repository.create(**item)
            stats["instructors"] += 1
        instructors[existing.name] = existing

    today = start_of_utc_day(clock())
    for item in data.get("schedules", []):
        class_type = class_types.get(item["class_type"])
        instructor = instructors.get(item["instructor"])
        if class_type is None or instructor is None:
            raise ValueError(
                f"Schedule references unknown class type or instructor: {item!r}"
            )
        start_time = today + timedelta(days=int(item.get("day_offset", 0))) + _parse_start(
            item["start"]
        )
        if schedule_repository.exists(
            class_type_id=class_type.id, instructor_id=instructor.id, start_time=start_time
        ):
            continue
        schedule_repository.create(
            class_type_id=class_type.id,
            instructor_id=instructor.id,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=class_type.duration_minutes),
            capacity=int(item.get("capacity") or class_type.max_capacity),
            enrolled_count=0,
            is_active=True,
        )
        stats["schedules"] += 1

    db.commit()
    logger.info(
        "Seeded catalog from %s: %s class types, %s instructors, %s schedules",
        seed_path,
        stats["class_types"],
        stats["instructors"],
        stats["schedules"],
    )
    return stats


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="Create tables and optionally seed the catalog")
    parser.add_argument("--seed", type=Path, help="YAML file with class types, instructors, schedules")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    init_db()
    if args.seed:
        db = SessionLocal()
        try:
            seed_catalog(db, args.seed)
        finally:
            db.close()


if __name__ == "__main__":
    main()
