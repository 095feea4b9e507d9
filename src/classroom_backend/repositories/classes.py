"""
Class repository: classes, their subjects and the teacher/student relation
rows hanging off them.

Relation writes flush but do not commit; the workflow commits once per
operation so every transition is a single transaction.
"""

import random
import string
from datetime import datetime, timezone
from typing import List, Optional, Set, Tuple
from sqlalchemy import select
from sqlalchemy.orm import Session

from classroom_backend.interface.classes import ClassSubjectSchedule, SchoolClassCreate
from classroom_backend.interface.enums import EnrollmentType, RequestStatus
from classroom_backend.model.school import (
    ClassStudent, ClassSubject, ClassSubjectTeacher, SchoolClass
)
from .base import BaseRepository, DuplicateError


def generate_class_code(level: str, stream: str) -> str:
    """LEVEL-STREAM-XXXX, e.g. S1-A-X5B9."""
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=4))
    return f"{level}-{stream}-{suffix}".upper()


class ClassRepository(BaseRepository[SchoolClass]):
    """Repository for SchoolClass and its relation rows."""

    CODE_ATTEMPTS = 5

    def __init__(self, db: Session):
        super().__init__(db, SchoolClass)

    # Classes

    def get_class(self, class_id: str) -> Optional[SchoolClass]:
        return self.get_by_id_optional(class_id)

    def find_classes(self, **criteria) -> List[SchoolClass]:
        return self.find_by(**criteria)

    def find_by_code(self, code: str) -> Optional[SchoolClass]:
        return self.find_one_by(code=code.upper())

    def create_class(self, data: SchoolClassCreate) -> SchoolClass:
        """
        Create a class, deriving its code from level and stream when the
        caller does not supply one. Generated codes are retried on collision.
        """
        if data.code:
            school_class = SchoolClass(
                name=data.name, level=data.level, stream=data.stream,
                code=data.code.upper(), description=data.description,
            )
            return self.create(school_class)

        last_error = None
        for _ in range(self.CODE_ATTEMPTS):
            school_class = SchoolClass(
                name=data.name, level=data.level, stream=data.stream,
                code=generate_class_code(data.level, data.stream),
                description=data.description,
            )
            try:
                return self.create(school_class)
            except DuplicateError as e:
                last_error = e
        raise last_error

    # Subjects of a class

    def get_class_subject(self, class_id: str, subject_id: str) -> Optional[ClassSubject]:
        return (
            self.db.query(ClassSubject)
            .filter(ClassSubject.class_id == class_id, ClassSubject.subject_id == subject_id)
            .first()
        )

    def class_subject_ids(self, class_id: str) -> List[str]:
        rows = self.db.execute(
            select(ClassSubject.subject_id).where(ClassSubject.class_id == class_id)
        ).all()
        return [row[0] for row in rows]

    def add_subject(self, class_id: str, subject_id: str,
                    schedule: Optional[ClassSubjectSchedule] = None) -> ClassSubject:
        schedule = schedule or ClassSubjectSchedule()
        class_subject = ClassSubject(
            class_id=class_id,
            subject_id=subject_id,
            day=schedule.day,
            start_time=schedule.start_time,
            end_time=schedule.end_time,
            venue=schedule.venue,
        )
        return BaseRepository(self.db, ClassSubject).insert_guarded(class_subject)

    def ensure_subject(self, class_id: str, subject_id: str) -> ClassSubject:
        """Return the class subject row, creating it when absent."""
        class_subject = self.get_class_subject(class_id, subject_id)
        if class_subject is not None:
            return class_subject
        return self.add_subject(class_id, subject_id)

    def remove_subject(self, class_id: str, subject_id: str) -> bool:
        class_subject = self.get_class_subject(class_id, subject_id)
        if class_subject is None:
            return False
        (
            self.db.query(ClassSubjectTeacher)
            .filter(ClassSubjectTeacher.class_id == class_id, ClassSubjectTeacher.subject_id == subject_id)
            .delete(synchronize_session=False)
        )
        self.db.delete(class_subject)
        self.db.flush()
        return True

    # Teacher assignments

    def get_teacher_assignment(self, class_id: str, subject_id: str, teacher_id: str) -> Optional[ClassSubjectTeacher]:
        return (
            self.db.query(ClassSubjectTeacher)
            .populate_existing()
            .filter(
                ClassSubjectTeacher.class_id == class_id,
                ClassSubjectTeacher.subject_id == subject_id,
                ClassSubjectTeacher.teacher_id == teacher_id,
            )
            .first()
        )

    def add_teacher_request(self, class_id: str, subject_id: str, teacher_id: str,
                            status: RequestStatus = RequestStatus.pending,
                            assigned_by: Optional[str] = None,
                            is_lead_teacher: bool = False) -> ClassSubjectTeacher:
        """
        Insert a teacher entry for (class, subject). The unique index on
        (class_id, subject_id, teacher_id) makes this the atomic
        "add only if this teacher has no entry yet" write.
        """
        now = datetime.now(timezone.utc)
        assignment = ClassSubjectTeacher(
            class_id=class_id,
            subject_id=subject_id,
            teacher_id=teacher_id,
            status=status,
            is_lead_teacher=is_lead_teacher,
            assigned_by=assigned_by,
            requested_at=now,
            approved_at=now if status == RequestStatus.approved else None,
            processed_at=now if status != RequestStatus.pending else None,
            processed_by=assigned_by if status != RequestStatus.pending else None,
        )
        return BaseRepository(self.db, ClassSubjectTeacher).insert_guarded(assignment)

    def assign_teacher(self, class_id: str, subject_id: str, teacher_id: str, admin_id: str,
                       is_lead_teacher: bool = False) -> ClassSubjectTeacher:
        return self.add_teacher_request(
            class_id, subject_id, teacher_id,
            status=RequestStatus.approved,
            assigned_by=admin_id,
            is_lead_teacher=is_lead_teacher,
        )

    def resolve_teacher_request(self, class_id: str, subject_id: str, teacher_id: str,
                                status: RequestStatus, admin_id: str,
                                reason: Optional[str] = None) -> int:
        """Flip a pending teacher entry; returns the number of rows changed (0 or 1)."""
        now = datetime.now(timezone.utc)
        values = {
            "status": status,
            "processed_at": now,
            "processed_by": admin_id,
            "reason": reason,
        }
        if status == RequestStatus.approved:
            values["approved_at"] = now
            values["assigned_by"] = admin_id

        return BaseRepository(self.db, ClassSubjectTeacher).update_where(
            values,
            ClassSubjectTeacher.class_id == class_id,
            ClassSubjectTeacher.subject_id == subject_id,
            ClassSubjectTeacher.teacher_id == teacher_id,
            ClassSubjectTeacher.status == RequestStatus.pending,
        )

    def remove_teacher(self, class_id: str, subject_id: str, teacher_id: str) -> int:
        return (
            self.db.query(ClassSubjectTeacher)
            .filter(
                ClassSubjectTeacher.class_id == class_id,
                ClassSubjectTeacher.subject_id == subject_id,
                ClassSubjectTeacher.teacher_id == teacher_id,
            )
            .delete(synchronize_session=False)
        )

    def is_teacher_approved(self, teacher_id: str, class_id: str, subject_id: Optional[str] = None) -> bool:
        """Approved for the subject, or for any subject of the class when none is given."""
        query = self.db.query(ClassSubjectTeacher.id).filter(
            ClassSubjectTeacher.teacher_id == teacher_id,
            ClassSubjectTeacher.class_id == class_id,
            ClassSubjectTeacher.status == RequestStatus.approved,
        )
        if subject_id is not None:
            query = query.filter(ClassSubjectTeacher.subject_id == subject_id)
        return query.first() is not None

    def approved_pairs_for_teacher(self, teacher_id: str) -> Set[Tuple[str, str]]:
        rows = self.db.execute(
            select(ClassSubjectTeacher.class_id, ClassSubjectTeacher.subject_id).where(
                ClassSubjectTeacher.teacher_id == teacher_id,
                ClassSubjectTeacher.status == RequestStatus.approved,
            )
        ).all()
        return {(row[0], row[1]) for row in rows}

    def approved_teacher_ids(self, class_ids: List[str], subject_id: Optional[str] = None) -> Set[str]:
        if not class_ids:
            return set()
        stmt = select(ClassSubjectTeacher.teacher_id).where(
            ClassSubjectTeacher.class_id.in_(class_ids),
            ClassSubjectTeacher.status == RequestStatus.approved,
        )
        if subject_id is not None:
            stmt = stmt.where(ClassSubjectTeacher.subject_id == subject_id)
        return {row[0] for row in self.db.execute(stmt).all()}

    def all_pairs(self) -> Set[Tuple[str, str]]:
        rows = self.db.execute(select(ClassSubject.class_id, ClassSubject.subject_id)).all()
        return {(row[0], row[1]) for row in rows}

    def pending_teacher_requests(self, class_id: Optional[str] = None) -> List[ClassSubjectTeacher]:
        query = self.db.query(ClassSubjectTeacher).filter(ClassSubjectTeacher.status == RequestStatus.pending)
        if class_id is not None:
            query = query.filter(ClassSubjectTeacher.class_id == class_id)
        return query.order_by(ClassSubjectTeacher.requested_at).all()

    # Student join requests

    def get_student_request(self, class_id: str, student_id: str) -> Optional[ClassStudent]:
        return (
            self.db.query(ClassStudent)
            .populate_existing()
            .filter(ClassStudent.class_id == class_id, ClassStudent.student_id == student_id)
            .first()
        )

    def add_student_request(self, class_id: str, student_id: str,
                            enrollment_type: EnrollmentType = EnrollmentType.self_request) -> ClassStudent:
        entry = ClassStudent(
            class_id=class_id,
            student_id=student_id,
            status=RequestStatus.pending,
            enrollment_type=enrollment_type,
            requested_at=datetime.now(timezone.utc),
        )
        return BaseRepository(self.db, ClassStudent).insert_guarded(entry)

    def resolve_student_request(self, class_id: str, student_id: str,
                                status: RequestStatus, admin_id: str,
                                reason: Optional[str] = None) -> int:
        now = datetime.now(timezone.utc)
        values = {
            "status": status,
            "processed_at": now,
            "processed_by": admin_id,
            "reason": reason,
        }
        if status == RequestStatus.approved:
            values["approved_at"] = now

        return BaseRepository(self.db, ClassStudent).update_where(
            values,
            ClassStudent.class_id == class_id,
            ClassStudent.student_id == student_id,
            ClassStudent.status == RequestStatus.pending,
        )

    def pending_student_requests(self, class_id: Optional[str] = None) -> List[ClassStudent]:
        query = self.db.query(ClassStudent).filter(ClassStudent.status == RequestStatus.pending)
        if class_id is not None:
            query = query.filter(ClassStudent.class_id == class_id)
        return query.order_by(ClassStudent.requested_at).all()
