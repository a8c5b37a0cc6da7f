"""
SQLAlchemy-backed entity store.

Every record crosses this boundary as a plain dict so the services above stay
independent of the ORM. Operations run inside ``transaction(fn)``: ``fn``
receives a store bound to one session, and the session is committed only if
``fn`` returns normally.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from db.models.users import User
from db.models.students import Student
from db.models.classes import SchoolClass
from db.models.enrollments import Enrollment
from db.models.grades import Grade
from db.models.revoked_tokens import RevokedToken

from .errors import ConflictError, StoreUnavailable

logger = logging.getLogger(__name__)

MODELS = {
    "principal": User,
    "student": Student,
    "class": SchoolClass,
    "enrollment": Enrollment,
    "grade": Grade,
    "revoked_token": RevokedToken,
}

INDEXES = {
    "principal": {"email": User.email},
    "student": {"owner": Student.owner_id},
    "class": {"owner": SchoolClass.owner_id},
    "enrollment": {"class": Enrollment.class_id, "student": Enrollment.student_id},
    "grade": {"class": Grade.class_id, "student": Grade.student_id},
    "revoked_token": {"signature": RevokedToken.signature, "issued_at": RevokedToken.issued_at},
}


def _model(entity_type: str):
    try:
        return MODELS[entity_type]
    except KeyError:
        raise ValueError(f"Unknown entity type: {entity_type}")


def _column(entity_type: str, index_name: str):
    try:
        return INDEXES[entity_type][index_name]
    except KeyError:
        raise ValueError(f"Unknown index {index_name!r} for {entity_type}")


def _to_dict(obj) -> Dict[str, Any]:
    return {c.name: getattr(obj, c.name) for c in obj.__table__.columns}


class SessionStore:
    """Store operations bound to a single open session."""

    def __init__(self, session: Session):
        self.session = session

    def transaction(self, fn: Callable[["SessionStore"], Any]):
        # already inside one; nested calls join it
        return fn(self)

    def get(self, entity_type: str, entity_id, for_update: bool = False) -> Optional[Dict[str, Any]]:
        if entity_id is None:
            return None
        obj = self.session.get(_model(entity_type), entity_id, with_for_update=for_update or None)
        return _to_dict(obj) if obj is not None else None

    def get_by_index(self, entity_type: str, index_name: str, value) -> List[Dict[str, Any]]:
        model = _model(entity_type)
        rows = (
            self.session.query(model)
            .filter(_column(entity_type, index_name) == value)
            .order_by(model.id)
            .all()
        )
        return [_to_dict(r) for r in rows]

    def get_before(self, entity_type: str, index_name: str, value) -> List[Dict[str, Any]]:
        model = _model(entity_type)
        rows = (
            self.session.query(model)
            .filter(_column(entity_type, index_name) < value)
            .order_by(model.id)
            .all()
        )
        return [_to_dict(r) for r in rows]

    def insert(self, entity_type: str, record: Dict[str, Any]) -> int:
        obj = _model(entity_type)(**record)
        self.session.add(obj)
        self.session.flush()
        return obj.id

    def patch(self, entity_type: str, entity_id, partial: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        obj = self.session.get(_model(entity_type), entity_id)
        if obj is None:
            return None
        for key, value in partial.items():
            setattr(obj, key, value)
        self.session.flush()
        return _to_dict(obj)

    def delete(self, entity_type: str, entity_id) -> bool:
        obj = self.session.get(_model(entity_type), entity_id)
        if obj is None:
            return False
        self.session.delete(obj)
        self.session.flush()
        return True


class EntityStore:
    """
    Entry point used by the services. Single operations called directly on the
    store each run in their own short transaction.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def transaction(self, fn: Callable[[SessionStore], Any]):
        session = self.session_factory()
        try:
            result = fn(SessionStore(session))
            session.commit()
            return result
        except IntegrityError as e:
            session.rollback()
            logger.warning("Integrity violation: %s", e.orig)
            raise ConflictError(f"Record conflicts with an existing one: {e.orig}") from e
        except DBAPIError as e:
            session.rollback()
            logger.error("Database error: %s", e)
            raise StoreUnavailable() from e
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, entity_type: str, entity_id, for_update: bool = False):
        return self.transaction(lambda tx: tx.get(entity_type, entity_id, for_update))

    def get_by_index(self, entity_type: str, index_name: str, value):
        return self.transaction(lambda tx: tx.get_by_index(entity_type, index_name, value))

    def get_before(self, entity_type: str, index_name: str, value):
        return self.transaction(lambda tx: tx.get_before(entity_type, index_name, value))

    def insert(self, entity_type: str, record: Dict[str, Any]) -> int:
        return self.transaction(lambda tx: tx.insert(entity_type, record))

    def patch(self, entity_type: str, entity_id, partial: Dict[str, Any]):
        return self.transaction(lambda tx: tx.patch(entity_type, entity_id, partial))

    def delete(self, entity_type: str, entity_id) -> bool:
        return self.transaction(lambda tx: tx.delete(entity_type, entity_id))
