"""
Role scopes: one class per role answering "which part of the class/subject
graph can this user act on".

Handlers never branch on the role themselves; they ask the principal's
scope. Admin is just the scope that answers yes to everything.
"""

from abc import ABC, abstractmethod
from typing import Optional, Set, Tuple
from sqlalchemy.orm import Session

from classroom_backend.interface.enums import UserRole
from classroom_backend.repositories.classes import ClassRepository
from classroom_backend.repositories.enrollments import EnrollmentRepository

Pair = Tuple[str, str]


class RoleScope(ABC):
    role: UserRole = None
    unrestricted: bool = False

    def __init__(self, user_id: Optional[str]):
        self.user_id = user_id

    @abstractmethod
    def can_access_class(self, class_id: Optional[str], subject_id: Optional[str], db: Session) -> bool:
        """Member of the class, or of the subject within it when one is given."""
        pass

    @abstractmethod
    def class_subject_pairs(self, db: Session) -> Set[Pair]:
        pass

    def can_manage_class_subject(self, class_id: Optional[str], subject_id: Optional[str], db: Session) -> bool:
        """Create class/subject bound resources (content, attendance, assignments)."""
        return False

    def class_ids(self, db: Session) -> Set[str]:
        return {class_id for class_id, _ in self.class_subject_pairs(db)}


class AdminScope(RoleScope):
    role = UserRole.admin
    unrestricted = True

    def can_access_class(self, class_id, subject_id, db):
        return True

    def can_manage_class_subject(self, class_id, subject_id, db):
        return True

    def class_subject_pairs(self, db):
        return ClassRepository(db).all_pairs()


class TeacherScope(RoleScope):
    role = UserRole.teacher

    def can_access_class(self, class_id, subject_id, db):
        if class_id is None or self.user_id is None:
            return False
        return ClassRepository(db).is_teacher_approved(self.user_id, class_id, subject_id)

    def can_manage_class_subject(self, class_id, subject_id, db):
        return self.can_access_class(class_id, subject_id, db)

    def class_subject_pairs(self, db):
        if self.user_id is None:
            return set()
        return ClassRepository(db).approved_pairs_for_teacher(self.user_id)


class StudentScope(RoleScope):
    role = UserRole.student

    def can_access_class(self, class_id, subject_id, db):
        if class_id is None or self.user_id is None:
            return False
        return EnrollmentRepository(db).is_student_enrolled(self.user_id, class_id, subject_id)

    def class_subject_pairs(self, db):
        if self.user_id is None:
            return set()
        return EnrollmentRepository(db).enrolled_pairs_for_student(self.user_id)

    def class_ids(self, db):
        # An active enrollment grants the class even with every subject dropped
        if self.user_id is None:
            return set()
        return EnrollmentRepository(db).active_class_ids_for_student(self.user_id)


_SCOPES = {
    UserRole.admin: AdminScope,
    UserRole.teacher: TeacherScope,
    UserRole.student: StudentScope,
}


def scope_for_role(role: UserRole, user_id: Optional[str]) -> RoleScope:
    return _SCOPES[UserRole(role)](user_id)
