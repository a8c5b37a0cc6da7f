import pytest
from sqlalchemy.orm import sessionmaker

from db.database import make_engine, utcnow
from db.init_db import init_db
from gradebook.services import build_services
from gradebook.store import EntityStore

SECRET = "test-secret-key"


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'gradebook.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return EntityStore(sessionmaker(bind=engine, autocommit=False, autoflush=False))


@pytest.fixture
def services(store):
    return build_services(store, SECRET)


def make_principal(store, email):
    now = utcnow()
    return store.insert("principal", {
        "name": email.split("@")[0],
        "email": email,
        "password_hash": "not-a-real-hash",
        "role": "teacher",
        "created_at": now,
        "updated_at": now,
    })


@pytest.fixture
def teacher(store):
    return make_principal(store, "anna@school.test")


@pytest.fixture
def other_teacher(store):
    return make_principal(store, "boris@school.test")


@pytest.fixture
def make_student(services):
    counter = iter(range(1, 1000))

    def _make(owner, **fields):
        n = next(counter)
        data = {"name": f"Student {n}", "email": f"student{n}@school.test", **fields}
        return services.records.create_student(owner, data)["id"]

    return _make


@pytest.fixture
def make_class(services):
    def _make(owner, capacity=None, name="Algebra"):
        return services.records.create_class(owner, {"name": name, "capacity": capacity})["id"]

    return _make
