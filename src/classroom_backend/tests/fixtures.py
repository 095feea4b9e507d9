"""
Graph builders for the test suite.

`build_school` seeds a small but complete class/subject graph; the helper
functions move teachers and students through the workflow so tests can
start from "approved teacher" or "enrolled student" in one line.
"""

from types import SimpleNamespace
from typing import Iterable, Optional
from unittest.mock import MagicMock
from uuid import uuid4
from sqlalchemy.orm import Session

from classroom_backend.interface.classes import SchoolClassCreate, SubjectCreate
from classroom_backend.interface.enums import RequestStatus, UserRole
from classroom_backend.interface.users import QualificationCreate, UserCreate
from classroom_backend.model.auth import User
from classroom_backend.permissions.principal import Principal
from classroom_backend.repositories.classes import ClassRepository
from classroom_backend.repositories.subjects import SubjectRepository
from classroom_backend.repositories.users import UserRepository
from classroom_backend.services.enrollment_workflow import EnrollmentWorkflow


def make_db():
    """Create a MagicMock DB session with common methods."""
    db = MagicMock()
    q = MagicMock()
    q.filter.return_value = q
    q.join.return_value = q
    q.populate_existing.return_value = q
    q.order_by.return_value = q
    q.all.return_value = []
    q.first.return_value = None
    q.count.return_value = 0
    db.query.return_value = q
    return db


def make_user(db: Session, role: UserRole, first_name: str = "Test", last_name: str = "User") -> User:
    return UserRepository(db).create_user(UserCreate(
        first_name=first_name,
        last_name=last_name,
        email=f"{first_name.lower()}.{uuid4().hex[:8]}@school.test",
        role=role,
    ))


def principal_of(user: User) -> Principal:
    return Principal.from_user(user)


def build_school(db: Session) -> SimpleNamespace:
    users = UserRepository(db)
    subjects = SubjectRepository(db)
    classes = ClassRepository(db)

    school = SimpleNamespace()
    school.admin = make_user(db, UserRole.admin, "Ada")
    school.teacher = make_user(db, UserRole.teacher, "Tom")
    school.other_teacher = make_user(db, UserRole.teacher, "Tess")
    school.student = make_user(db, UserRole.student, "Sam")
    school.other_student = make_user(db, UserRole.student, "Sue")

    school.math = subjects.create_subject(SubjectCreate(name="Mathematics", code="math"))
    school.physics = subjects.create_subject(SubjectCreate(name="Physics", code="phy"))
    school.history = subjects.create_subject(SubjectCreate(name="History", code="hist"))

    school.s1a = classes.create_class(SchoolClassCreate(name="Senior 1 A", level="S1", stream="A"))
    school.s1b = classes.create_class(SchoolClassCreate(name="Senior 1 B", level="S1", stream="B"))

    # S1 A offers all three subjects, S1 B only mathematics and history
    for subject in (school.math, school.physics, school.history):
        classes.add_subject(school.s1a.id, subject.id)
    for subject in (school.math, school.history):
        classes.add_subject(school.s1b.id, subject.id)
    classes.commit()

    for teacher in (school.teacher, school.other_teacher):
        for subject in (school.math, school.physics, school.history):
            users.add_qualification(teacher.id, QualificationCreate(subject_id=subject.id))

    school.admin_principal = principal_of(school.admin)
    school.teacher_principal = principal_of(school.teacher)
    school.student_principal = principal_of(school.student)
    return school


def approve_teacher(db: Session, school, teacher: User, class_id: str, subject_id: str,
                    status: RequestStatus = RequestStatus.approved):
    workflow = EnrollmentWorkflow(db)
    workflow.request_to_teach(teacher.id, class_id, subject_id)
    return workflow.resolve_teacher_request(school.admin_principal, class_id, subject_id, teacher.id, status)


def enroll(db: Session, school, student: User, class_id: str,
           subject_ids: Optional[Iterable[str]] = None,
           academic_year: str = "2025", term: str = "Term 1"):
    return EnrollmentWorkflow(db).enroll_student(
        school.admin_principal, student.id, class_id, academic_year, term, subject_ids
    )
