import logging
from typing import Callable, Dict, Iterable, List, Set

from db.database import utcnow

from .errors import CapacityExceeded, NotEnrolled
from .ownership import OwnershipGuard

logger = logging.getLogger(__name__)


def find_enrollment(tx, class_id, student_id):
    for row in tx.get_by_index("enrollment", "class", class_id):
        if row["student_id"] == student_id:
            return row
    return None


class EnrollmentManager:
    """
    Assigns students to classes and removes them again.

    ``assign`` has set-union semantics: students already in the class are
    skipped, so repeating a call is harmless. The count, the capacity check and
    the inserts all happen in one store transaction that holds the class row,
    which is what keeps two concurrent calls from overfilling a class.
    """

    def __init__(self, store, clock: Callable = utcnow):
        self.store = store
        self.clock = clock

    def assign(self, principal_id, class_id, student_ids: Iterable) -> Set[int]:
        requested = set(student_ids)

        def _assign(tx):
            guard = OwnershipGuard(tx)
            klass = guard.owns_class(principal_id, class_id, lock=True)
            guard.owns_students(principal_id, requested)

            current = tx.get_by_index("enrollment", "class", class_id)
            already = {row["student_id"] for row in current}
            pending = sorted(requested - already)

            capacity = klass["capacity"]
            if capacity is not None and len(current) + len(pending) > capacity:
                raise CapacityExceeded(
                    f"Adding {len(pending)} students would exceed class capacity "
                    f"({len(current)}/{capacity} enrolled)"
                )

            now = self.clock()
            return {
                tx.insert("enrollment", {"class_id": class_id, "student_id": sid, "enrolled_at": now})
                for sid in pending
            }

        created = self.store.transaction(_assign)
        if created:
            logger.info("Enrolled %d students in class %s", len(created), class_id)
        return created

    def remove(self, principal_id, class_id, student_id) -> None:
        def _remove(tx):
            OwnershipGuard(tx).owns_enrollment_pair(principal_id, class_id, student_id)
            enrollment = find_enrollment(tx, class_id, student_id)
            if enrollment is None:
                raise NotEnrolled()
            tx.delete("enrollment", enrollment["id"])

        self.store.transaction(_remove)
        logger.info("Removed student %s from class %s", student_id, class_id)

    def list_students(self, principal_id, class_id) -> List[Dict]:
        def _list(tx):
            OwnershipGuard(tx).owns_class(principal_id, class_id)
            students = []
            for row in tx.get_by_index("enrollment", "class", class_id):
                student = tx.get("student", row["student_id"])
                students.append({**student, "enrolled_at": row["enrolled_at"]})
            return students

        return self.store.transaction(_list)

    def list_classes(self, principal_id, student_id) -> List[Dict]:
        def _list(tx):
            OwnershipGuard(tx).owns_student(principal_id, student_id)
            classes = []
            for row in tx.get_by_index("enrollment", "student", student_id):
                klass = tx.get("class", row["class_id"])
                classes.append({**klass, "enrolled_at": row["enrolled_at"]})
            return classes

        return self.store.transaction(_list)
