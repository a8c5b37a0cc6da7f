import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from db import database
from db.database import make_engine, utcnow
from gradebook import config
from gradebook.errors import ConflictError, StoreUnavailable
from gradebook.store import EntityStore


def test_duplicate_enrollment_insert_is_a_conflict(services, store, teacher, make_student, make_class):
    klass = make_class(teacher)
    student = make_student(teacher)
    services.enrollments.assign(teacher, klass, {student})

    with pytest.raises(ConflictError):
        store.insert("enrollment", {"class_id": klass, "student_id": student, "enrolled_at": utcnow()})

    assert len(store.get_by_index("enrollment", "class", klass)) == 1


def test_driver_error_rolls_back_and_reports_unavailable(store, teacher):
    def _write_then_fail(tx):
        tx.insert("student", {"owner_id": teacher, "name": "Lost"})
        raise OperationalError("INSERT INTO students", {}, Exception("disk I/O error"))

    with pytest.raises(StoreUnavailable):
        store.transaction(_write_then_fail)

    assert store.get_by_index("student", "owner", teacher) == []


def test_unreachable_database_is_unavailable(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'missing' / 'gradebook.db'}")
    store = EntityStore(sessionmaker(bind=engine))

    with pytest.raises(StoreUnavailable):
        store.get("student", 1)
    engine.dispose()


def test_deleted_ids_are_not_reused(store, teacher):
    first = store.insert("student", {"owner_id": teacher, "name": "Lena"})
    store.delete("student", first)

    second = store.insert("student", {"owner_id": teacher, "name": "Omar"})

    assert second != first


def test_engine_uses_configured_url():
    assert str(database.engine.url) == config.DATABASE_URL
