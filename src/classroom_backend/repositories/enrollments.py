"""
Enrollment repository for AcademicEnrollment and its per-subject rows.

Status transitions are predicate-guarded UPDATEs on `status = 'active'`;
the partial unique index on (student_id, academic_year, term) for active
rows turns concurrent duplicate enrollments into DuplicateError.
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set, Tuple
from sqlalchemy import select
from sqlalchemy.orm import Session

from classroom_backend.interface.enums import (
    EnrollmentStatus, SubjectEnrollmentStatus, Term
)
from classroom_backend.model.enrollment import AcademicEnrollment, EnrollmentSubject
from .base import BaseRepository


class EnrollmentRepository(BaseRepository[AcademicEnrollment]):
    """Repository for AcademicEnrollment entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db, AcademicEnrollment)
        self.subjects = BaseRepository(db, EnrollmentSubject)

    def get_enrollment(self, enrollment_id: str) -> Optional[AcademicEnrollment]:
        return self.get_by_id_optional(enrollment_id)

    def find_active_enrollments(self, student_id: Optional[str] = None,
                                class_id: Optional[str] = None,
                                academic_year: Optional[str] = None,
                                term: Optional[Term] = None) -> List[AcademicEnrollment]:
        return (
            self._filtered(
                student_id=student_id,
                class_id=class_id,
                academic_year=academic_year,
                term=term,
            )
            .filter(AcademicEnrollment.status == EnrollmentStatus.active)
            .populate_existing()
            .all()
        )

    def create_enrollment(self, student_id: str, class_id: str, academic_year: str,
                          term: Term, subject_ids: Iterable[str],
                          transfer_from_class_id: Optional[str] = None) -> AcademicEnrollment:
        """Insert an active enrollment with one `enrolled` row per subject. Flushes, does not commit."""
        now = datetime.now(timezone.utc)
        enrollment = AcademicEnrollment(
            student_id=student_id,
            class_id=class_id,
            academic_year=academic_year,
            term=term,
            status=EnrollmentStatus.active,
            enrollment_date=now,
            transfer_from_class_id=transfer_from_class_id,
        )
        for subject_id in dict.fromkeys(subject_ids):
            enrollment.subjects.append(
                EnrollmentSubject(subject_id=subject_id, status=SubjectEnrollmentStatus.enrolled, enrollment_date=now)
            )
        return self.insert_guarded(enrollment)

    def mark_transferred(self, enrollment_id: str, to_class_id: str, reason: Optional[str] = None) -> int:
        now = datetime.now(timezone.utc)
        return self.update_where(
            {
                "status": EnrollmentStatus.transferred,
                "transfer_to_class_id": to_class_id,
                "transfer_date": now,
                "transfer_reason": reason,
                "completion_date": now,
            },
            AcademicEnrollment.id == enrollment_id,
            AcademicEnrollment.status == EnrollmentStatus.active,
        )

    def transfer_enrollment(self, enrollment: AcademicEnrollment, to_class_id: str,
                            subject_ids: Iterable[str],
                            reason: Optional[str] = None) -> Optional[AcademicEnrollment]:
        """
        Close `enrollment` as transferred and open the replacement in
        `to_class_id` within the current transaction. Returns None when the
        source enrollment was no longer active.
        """
        from_class_id = enrollment.class_id
        student_id = enrollment.student_id
        academic_year = enrollment.academic_year
        term = enrollment.term

        # The UPDATE runs before the INSERT so the partial unique index
        # already sees the old row as inactive.
        if self.mark_transferred(enrollment.id, to_class_id, reason) == 0:
            return None

        return self.create_enrollment(
            student_id, to_class_id, academic_year, term, subject_ids,
            transfer_from_class_id=from_class_id,
        )

    def complete_enrollment(self, enrollment_id: str) -> int:
        now = datetime.now(timezone.utc)
        changed = self.update_where(
            {"status": EnrollmentStatus.completed, "completion_date": now},
            AcademicEnrollment.id == enrollment_id,
            AcademicEnrollment.status == EnrollmentStatus.active,
        )
        if changed:
            self.subjects.update_where(
                {"status": SubjectEnrollmentStatus.completed, "completion_date": now},
                EnrollmentSubject.enrollment_id == enrollment_id,
                EnrollmentSubject.status == SubjectEnrollmentStatus.enrolled,
            )
        return changed

    def drop_subject(self, enrollment_id: str, subject_id: str) -> int:
        return self.subjects.update_where(
            {"status": SubjectEnrollmentStatus.dropped, "completion_date": datetime.now(timezone.utc)},
            EnrollmentSubject.enrollment_id == enrollment_id,
            EnrollmentSubject.subject_id == subject_id,
            EnrollmentSubject.status == SubjectEnrollmentStatus.enrolled,
        )

    # Read helpers used by the resolver and the scoping index

    def is_student_enrolled(self, student_id: str, class_id: str, subject_id: Optional[str] = None) -> bool:
        """Active enrollment in the class and, if given, an `enrolled` subject row."""
        query = self.db.query(AcademicEnrollment.id).filter(
            AcademicEnrollment.student_id == student_id,
            AcademicEnrollment.class_id == class_id,
            AcademicEnrollment.status == EnrollmentStatus.active,
        )
        if subject_id is not None:
            query = query.join(
                EnrollmentSubject, EnrollmentSubject.enrollment_id == AcademicEnrollment.id
            ).filter(
                EnrollmentSubject.subject_id == subject_id,
                EnrollmentSubject.status == SubjectEnrollmentStatus.enrolled,
            )
        return query.first() is not None

    def enrolled_pairs_for_student(self, student_id: str) -> Set[Tuple[str, str]]:
        rows = self.db.execute(
            select(AcademicEnrollment.class_id, EnrollmentSubject.subject_id)
            .join(EnrollmentSubject, EnrollmentSubject.enrollment_id == AcademicEnrollment.id)
            .where(
                AcademicEnrollment.student_id == student_id,
                AcademicEnrollment.status == EnrollmentStatus.active,
                EnrollmentSubject.status == SubjectEnrollmentStatus.enrolled,
            )
        ).all()
        return {(row[0], row[1]) for row in rows}

    def active_class_ids_for_student(self, student_id: str) -> Set[str]:
        rows = self.db.execute(
            select(AcademicEnrollment.class_id).where(
                AcademicEnrollment.student_id == student_id,
                AcademicEnrollment.status == EnrollmentStatus.active,
            )
        ).all()
        return {row[0] for row in rows}

    def active_student_ids(self, class_ids: Iterable[str], subject_id: Optional[str] = None) -> Set[str]:
        class_ids = list(class_ids)
        if not class_ids:
            return set()
        stmt = select(AcademicEnrollment.student_id).where(
            AcademicEnrollment.class_id.in_(class_ids),
            AcademicEnrollment.status == EnrollmentStatus.active,
        )
        if subject_id is not None:
            stmt = stmt.join(
                EnrollmentSubject, EnrollmentSubject.enrollment_id == AcademicEnrollment.id
            ).where(
                EnrollmentSubject.subject_id == subject_id,
                EnrollmentSubject.status == SubjectEnrollmentStatus.enrolled,
            )
        return {row[0] for row in self.db.execute(stmt).all()}
