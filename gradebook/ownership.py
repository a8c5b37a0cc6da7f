"""
Ownership checks for every entity type.

A principal owns students and classes directly. Grades and enrollments are
never owned on their own; they belong to whoever owns both the student and
the class they point at.

Each check returns the owned record, or raises ``OwnershipError``. A missing
record and a record owned by someone else raise the same error with the same
message, so callers cannot probe for ids that belong to other teachers.
"""
import logging
from typing import Dict, Iterable, List, Tuple

from .errors import OwnershipError

logger = logging.getLogger(__name__)


class OwnershipGuard:
    def __init__(self, store):
        self.store = store

    def _deny(self, entity_type: str, entity_id, principal_id):
        logger.warning("Denied %s %s to principal %s", entity_type, entity_id, principal_id)
        raise OwnershipError(f"{entity_type.capitalize()} not found or you don't have permission to access it")

    def _owned(self, entity_type: str, principal_id, entity_id, for_update: bool = False) -> Dict:
        record = self.store.get(entity_type, entity_id, for_update=for_update)
        if record is None or record["owner_id"] != principal_id:
            self._deny(entity_type, entity_id, principal_id)
        return record

    def owns_student(self, principal_id, student_id) -> Dict:
        return self._owned("student", principal_id, student_id)

    def owns_class(self, principal_id, class_id, lock: bool = False) -> Dict:
        return self._owned("class", principal_id, class_id, for_update=lock)

    def owns_students(self, principal_id, student_ids: Iterable) -> List[Dict]:
        # all-or-nothing: the first foreign id aborts the whole check
        return [self.owns_student(principal_id, sid) for sid in sorted(set(student_ids))]

    def owns_enrollment_pair(self, principal_id, class_id, student_id) -> Tuple[Dict, Dict]:
        klass = self.owns_class(principal_id, class_id)
        student = self.owns_student(principal_id, student_id)
        return klass, student

    def owns_grade_transitively(self, principal_id, grade_id) -> Dict:
        grade = self.store.get("grade", grade_id)
        if grade is None:
            self._deny("grade", grade_id, principal_id)
        try:
            self.owns_enrollment_pair(principal_id, grade["class_id"], grade["student_id"])
        except OwnershipError:
            self._deny("grade", grade_id, principal_id)
        return grade
