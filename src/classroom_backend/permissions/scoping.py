"""
Scoping index: the derived "my classes / my subjects / who can I message"
views of the relation graph.

Nothing here is persisted or cached; every call reads the current
approval and enrollment state.
"""

import logging
from typing import Optional, Set, Tuple
from sqlalchemy.orm import Session

from classroom_backend.api.exceptions import ForbiddenException, NotFoundException
from classroom_backend.interface.enums import UserRole
from classroom_backend.permissions.principal import Principal
from classroom_backend.repositories.classes import ClassRepository
from classroom_backend.repositories.enrollments import EnrollmentRepository
from classroom_backend.repositories.users import UserRepository

logger = logging.getLogger(__name__)


def scoped_class_subject_pairs(principal: Principal, db: Session) -> Set[Tuple[str, str]]:
    """(class_id, subject_id) pairs the principal may act on."""
    return principal.scope().class_subject_pairs(db)


def scoped_class_ids(principal: Principal, db: Session) -> Set[str]:
    return principal.scope().class_ids(db)


def messageable_user_ids(principal: Principal, db: Session,
                         class_id: Optional[str] = None,
                         subject_id: Optional[str] = None) -> Set[str]:
    """
    Users the principal may start a conversation with.

    Teachers reach the active students of the classes they are approved
    in; students reach the approved teachers of the classes they are
    actively enrolled in. Admins are reachable by everyone and reach
    everyone. Filtering by a class requires scope in that class.

    Raises:
        NotFoundException: If `class_id` does not exist
        ForbiddenException: If the principal has no scope in `class_id`
    """
    user_id = principal.get_user_id_or_throw()
    scope = principal.scope()
    classes = ClassRepository(db)
    enrollments = EnrollmentRepository(db)
    users = UserRepository(db)

    if class_id is not None:
        if classes.get_class(class_id) is None:
            raise NotFoundException(detail=f"Class {class_id} not found")
        if not scope.can_access_class(class_id, subject_id, db):
            logger.debug("Denied %s messaging scope in class %s", user_id, class_id)
            raise ForbiddenException(detail="Not a member of this class")
        class_ids = [class_id]
    elif scope.unrestricted:
        class_ids = None
    elif subject_id is not None:
        # Only classes where the principal holds this very subject
        class_ids = sorted(c for c, s in scope.class_subject_pairs(db) if s == subject_id)
    else:
        class_ids = sorted(scope.class_ids(db))

    if scope.unrestricted and class_ids is None:
        candidates = users.ids_with_role([UserRole.admin, UserRole.teacher, UserRole.student])
    else:
        candidates = set()
        if principal.role in (UserRole.admin, UserRole.student):
            candidates |= classes.approved_teacher_ids(class_ids, subject_id)
        if principal.role in (UserRole.admin, UserRole.teacher):
            candidates |= enrollments.active_student_ids(class_ids, subject_id)
        candidates |= users.ids_with_role([UserRole.admin])

    candidates.discard(user_id)
    return candidates
