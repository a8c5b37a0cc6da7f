"""
Owner-scoped CRUD for students, classes and grades.

There is deliberately no "list everything" variant: every query is keyed by
the calling principal. Deletes of students and classes live in
``cascade.py`` because they must take dependent rows with them.
"""
import logging
from typing import Any, Callable, Dict, List

from db.database import utcnow

from .enrollment import find_enrollment
from .errors import CapacityExceeded, ConflictError, InvalidRecord, NotEnrolled
from .ownership import OwnershipGuard

logger = logging.getLogger(__name__)

STUDENT_FIELDS = {
    "name", "email", "grade_level", "age", "gender", "notes", "parent_email", "parent_phone",
}
CLASS_FIELDS = {
    "name", "description", "subject", "grade_level", "schedule", "capacity",
}
GRADE_FIELDS = {"assignment", "score"}


def _check_fields(data: Dict[str, Any], allowed: set) -> Dict[str, Any]:
    unknown = set(data) - allowed
    if unknown:
        raise InvalidRecord(f"Unknown or read-only fields: {', '.join(sorted(unknown))}")
    return dict(data)


def _check_score(score):
    if not isinstance(score, (int, float)) or isinstance(score, bool):
        raise InvalidRecord("Score must be a number")
    if not 0 <= score <= 100:
        raise InvalidRecord("Score must be between 0 and 100")


def _check_capacity(capacity):
    if capacity is not None and capacity <= 0:
        raise InvalidRecord("Capacity must be a positive integer")


class RecordService:
    def __init__(self, store, clock: Callable = utcnow):
        self.store = store
        self.clock = clock

    # ---------- students ----------

    def _ensure_unique_email(self, tx, principal_id, email, exclude_id=None):
        if not email:
            return
        for student in tx.get_by_index("student", "owner", principal_id):
            if student["email"] == email and student["id"] != exclude_id:
                raise ConflictError("Student with this email already exists")

    def create_student(self, principal_id, data: Dict[str, Any]) -> Dict:
        fields = _check_fields(data, STUDENT_FIELDS)
        if not fields.get("name"):
            raise InvalidRecord("Student name is required")

        def _create(tx):
            self._ensure_unique_email(tx, principal_id, fields.get("email"))
            now = self.clock()
            student_id = tx.insert("student", {
                **fields, "owner_id": principal_id, "created_at": now, "updated_at": now,
            })
            return tx.get("student", student_id)

        student = self.store.transaction(_create)
        logger.info("Principal %s created student %s", principal_id, student["id"])
        return student

    def get_student(self, principal_id, student_id) -> Dict:
        return self.store.transaction(
            lambda tx: OwnershipGuard(tx).owns_student(principal_id, student_id)
        )

    def list_students(self, principal_id) -> List[Dict]:
        return self.store.get_by_index("student", "owner", principal_id)

    def update_student(self, principal_id, student_id, data: Dict[str, Any]) -> Dict:
        updates = _check_fields(data, STUDENT_FIELDS)
        if "name" in updates and not updates["name"]:
            raise InvalidRecord("Student name cannot be empty")

        def _update(tx):
            OwnershipGuard(tx).owns_student(principal_id, student_id)
            if updates.get("email"):
                self._ensure_unique_email(tx, principal_id, updates["email"], exclude_id=student_id)
            return tx.patch("student", student_id, {**updates, "updated_at": self.clock()})

        return self.store.transaction(_update)

    # ---------- classes ----------

    def create_class(self, principal_id, data: Dict[str, Any]) -> Dict:
        fields = _check_fields(data, CLASS_FIELDS)
        if not fields.get("name"):
            raise InvalidRecord("Class name is required")
        _check_capacity(fields.get("capacity"))

        def _create(tx):
            now = self.clock()
            class_id = tx.insert("class", {
                **fields, "owner_id": principal_id, "created_at": now, "updated_at": now,
            })
            return tx.get("class", class_id)

        klass = self.store.transaction(_create)
        logger.info("Principal %s created class %s", principal_id, klass["id"])
        return klass

    def get_class(self, principal_id, class_id) -> Dict:
        return self.store.transaction(
            lambda tx: OwnershipGuard(tx).owns_class(principal_id, class_id)
        )

    def list_classes(self, principal_id) -> List[Dict]:
        return self.store.get_by_index("class", "owner", principal_id)

    def update_class(self, principal_id, class_id, data: Dict[str, Any]) -> Dict:
        updates = _check_fields(data, CLASS_FIELDS)
        if "name" in updates and not updates["name"]:
            raise InvalidRecord("Class name cannot be empty")
        if "capacity" in updates:
            _check_capacity(updates["capacity"])

        def _update(tx):
            OwnershipGuard(tx).owns_class(principal_id, class_id, lock=True)
            capacity = updates.get("capacity")
            if capacity is not None:
                enrolled = len(tx.get_by_index("enrollment", "class", class_id))
                if enrolled > capacity:
                    raise CapacityExceeded(
                        f"Class already has {enrolled} students; capacity cannot be {capacity}"
                    )
            return tx.patch("class", class_id, {**updates, "updated_at": self.clock()})

        return self.store.transaction(_update)

    # ---------- grades ----------

    def create_grade(self, principal_id, student_id, class_id, assignment: str, score) -> Dict:
        if not assignment:
            raise InvalidRecord("Assignment is required")
        _check_score(score)

        def _create(tx):
            OwnershipGuard(tx).owns_enrollment_pair(principal_id, class_id, student_id)
            if find_enrollment(tx, class_id, student_id) is None:
                raise NotEnrolled()
            now = self.clock()
            grade_id = tx.insert("grade", {
                "student_id": student_id,
                "class_id": class_id,
                "assignment": assignment,
                "score": score,
                "created_at": now,
                "updated_at": now,
            })
            return tx.get("grade", grade_id)

        grade = self.store.transaction(_create)
        logger.info("Principal %s graded student %s in class %s", principal_id, student_id, class_id)
        return grade

    def get_grade(self, principal_id, grade_id) -> Dict:
        def _get(tx):
            grade = OwnershipGuard(tx).owns_grade_transitively(principal_id, grade_id)
            return {
                **grade,
                "student": tx.get("student", grade["student_id"]),
                "class": tx.get("class", grade["class_id"]),
            }

        return self.store.transaction(_get)

    def update_grade(self, principal_id, grade_id, data: Dict[str, Any]) -> Dict:
        updates = _check_fields(data, GRADE_FIELDS)
        if "score" in updates:
            _check_score(updates["score"])
        if "assignment" in updates and not updates["assignment"]:
            raise InvalidRecord("Assignment cannot be empty")

        def _update(tx):
            OwnershipGuard(tx).owns_grade_transitively(principal_id, grade_id)
            return tx.patch("grade", grade_id, {**updates, "updated_at": self.clock()})

        return self.store.transaction(_update)

    def delete_grade(self, principal_id, grade_id) -> None:
        def _delete(tx):
            OwnershipGuard(tx).owns_grade_transitively(principal_id, grade_id)
            tx.delete("grade", grade_id)

        self.store.transaction(_delete)
        logger.info("Principal %s deleted grade %s", principal_id, grade_id)

    def list_grades_for_class(self, principal_id, class_id) -> List[Dict]:
        def _list(tx):
            OwnershipGuard(tx).owns_class(principal_id, class_id)
            return [
                {**grade, "student": tx.get("student", grade["student_id"])}
                for grade in tx.get_by_index("grade", "class", class_id)
            ]

        return self.store.transaction(_list)

    def list_grades_for_student(self, principal_id, student_id) -> List[Dict]:
        def _list(tx):
            OwnershipGuard(tx).owns_student(principal_id, student_id)
            return [
                {**grade, "class": tx.get("class", grade["class_id"])}
                for grade in tx.get_by_index("grade", "student", student_id)
            ]

        return self.store.transaction(_list)
