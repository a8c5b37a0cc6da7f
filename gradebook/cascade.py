import logging
from typing import Dict

from .ownership import OwnershipGuard

logger = logging.getLogger(__name__)


class CascadeCoordinator:
    """
    Deletes a class or a student together with everything that points at it.

    Grades go first, then enrollments, then the parent row, all in a single
    transaction. Deleting an id that is already gone succeeds and reports
    ``deleted: False``; the intent is "make sure it's gone", so a retry after
    a failure is always safe.
    """

    def __init__(self, store):
        self.store = store

    def _cascade(self, entity_type: str, index_name: str, principal_id, entity_id) -> Dict:
        def _delete(tx):
            result = {"deleted": False, "grades": 0, "enrollments": 0}
            if tx.get(entity_type, entity_id, for_update=True) is None:
                return result

            guard = OwnershipGuard(tx)
            if entity_type == "class":
                guard.owns_class(principal_id, entity_id)
            else:
                guard.owns_student(principal_id, entity_id)

            for grade in tx.get_by_index("grade", index_name, entity_id):
                tx.delete("grade", grade["id"])
                result["grades"] += 1
            for enrollment in tx.get_by_index("enrollment", index_name, entity_id):
                tx.delete("enrollment", enrollment["id"])
                result["enrollments"] += 1
            result["deleted"] = tx.delete(entity_type, entity_id)
            return result

        result = self.store.transaction(_delete)
        if result["deleted"]:
            logger.info(
                "Deleted %s %s with %d grades and %d enrollments",
                entity_type, entity_id, result["grades"], result["enrollments"],
            )
        return result

    def delete_class(self, principal_id, class_id) -> Dict:
        return self._cascade("class", "class", principal_id, class_id)

    def delete_student(self, principal_id, student_id) -> Dict:
        return self._cascade("student", "student", principal_id, student_id)
