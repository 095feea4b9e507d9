"""
Assignment and enrollment workflow.

Owns every write to the class/subject/enrollment graph: teacher requests to
teach a subject, student requests to join a class, admin approval and
rejection, direct admin assignment and the enrollment lifecycle (enroll,
transfer, complete, drop subject).

Each public method is one transaction. Inserts rely on unique indexes and
status transitions on predicate-guarded UPDATEs, so two concurrent callers
racing for the same row get exactly one success and one ConflictException
or InvalidStateException.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session

from classroom_backend.api.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)
from classroom_backend.interface.base import validate_academic_year
from classroom_backend.interface.classes import ClassSubjectSchedule
from classroom_backend.interface.enums import (
    EnrollmentStatus, EnrollmentType, RequestStatus, RoleInClass,
    SubjectEnrollmentStatus, Term, UserRole
)
from classroom_backend.model.auth import User
from classroom_backend.model.enrollment import AcademicEnrollment, EnrollmentSubject
from classroom_backend.model.school import ClassStudent, ClassSubject, ClassSubjectTeacher, SchoolClass, Subject
from classroom_backend.permissions.principal import Principal
from classroom_backend.repositories import (
    ClassRepository, DuplicateError, EnrollmentRepository, SubjectRepository, UserRepository
)
from classroom_backend.settings import settings

logger = logging.getLogger(__name__)


class EnrollmentWorkflow:
    """State machine for teacher assignments, student join requests and enrollments."""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.classes = ClassRepository(db)
        self.subjects = SubjectRepository(db)
        self.enrollments = EnrollmentRepository(db)

    # Teacher requests

    def request_to_teach(self, teacher_id: str, class_id: str, subject_id: str) -> ClassSubjectTeacher:
        """
        Teacher asks to teach `subject_id` in `class_id`.

        Raises:
            NotFoundException: Unknown teacher, class or subject
            ValidationException: Not a teacher, or not qualified for the subject
            ConflictException: The teacher already has an entry for this class subject
        """
        self._get_user(teacher_id, UserRole.teacher)
        self._get_class(class_id)
        self._get_subject(subject_id)

        if not self.users.has_qualification(teacher_id, subject_id):
            raise ValidationException(detail="Teacher is not qualified to teach this subject")

        if self.classes.get_teacher_assignment(class_id, subject_id, teacher_id) is not None:
            raise ConflictException(detail="A request for this class subject already exists")

        with self._transaction("A request for this class subject already exists"):
            self.classes.ensure_subject(class_id, subject_id)
            assignment = self.classes.add_teacher_request(class_id, subject_id, teacher_id)
            self.users.mirror_request(teacher_id, class_id, RoleInClass.teacher, subject_id=subject_id)

        logger.info("Teacher %s requested to teach subject %s in class %s", teacher_id, subject_id, class_id)
        return assignment

    def resolve_teacher_request(self, principal: Principal, class_id: str, subject_id: str,
                                teacher_id: str, status, reason: Optional[str] = None) -> ClassSubjectTeacher:
        """
        Approve or reject a pending teacher request.

        Re-resolving with the status the request already has is a no-op;
        any other transition out of a resolved state is rejected.
        """
        self._require_admin(principal)
        status = self._resolution_status(status)

        with self._transaction("Teacher request changed concurrently"):
            changed = self.classes.resolve_teacher_request(
                class_id, subject_id, teacher_id, status, principal.user_id, reason
            )
            if changed:
                self.users.update_request_mirror(
                    teacher_id, class_id, RoleInClass.teacher, status, principal.user_id,
                    subject_id=subject_id, reason=reason,
                )

        assignment = self.classes.get_teacher_assignment(class_id, subject_id, teacher_id)
        if not changed:
            self._check_unchanged(assignment, status, "Teacher request")
        else:
            logger.info("Teacher request %s/%s/%s %s by %s",
                        class_id, subject_id, teacher_id, status.value, principal.user_id)
        return assignment

    def assign_teacher(self, principal: Principal, class_id: str, subject_id: str, teacher_id: str,
                       is_lead_teacher: bool = False) -> ClassSubjectTeacher:
        """Admin assigns a teacher directly; the entry is created already approved."""
        self._require_admin(principal)
        self._get_user(teacher_id, UserRole.teacher)
        self._get_class(class_id)

        if self.classes.get_class_subject(class_id, subject_id) is None:
            raise NotFoundException(detail="Subject is not part of this class")

        if self.classes.get_teacher_assignment(class_id, subject_id, teacher_id) is not None:
            raise ConflictException(detail="Teacher already has an entry for this class subject")

        with self._transaction("Teacher already has an entry for this class subject"):
            assignment = self.classes.assign_teacher(
                class_id, subject_id, teacher_id, principal.user_id, is_lead_teacher=is_lead_teacher
            )
            self.users.mirror_request(
                teacher_id, class_id, RoleInClass.teacher, subject_id=subject_id,
                status=RequestStatus.approved, processed_by=principal.user_id,
            )

        logger.info("Teacher %s assigned to subject %s in class %s by %s",
                    teacher_id, subject_id, class_id, principal.user_id)
        return assignment

    def remove_teacher(self, principal: Principal, class_id: str, subject_id: str, teacher_id: str) -> None:
        self._require_admin(principal)

        with self._transaction("Teacher entry changed concurrently"):
            if self.classes.remove_teacher(class_id, subject_id, teacher_id) == 0:
                raise NotFoundException(detail="Teacher is not assigned to this class subject")
            self.users.remove_request_mirrors(class_id, subject_id, RoleInClass.teacher, user_id=teacher_id)

        logger.info("Teacher %s removed from subject %s in class %s", teacher_id, subject_id, class_id)

    # Class subjects

    def add_subject_to_class(self, principal: Principal, class_id: str, subject_id: str,
                             schedule: Optional[ClassSubjectSchedule] = None) -> ClassSubject:
        self._require_admin(principal)
        self._get_class(class_id)
        self._get_subject(subject_id)

        if self.classes.get_class_subject(class_id, subject_id) is not None:
            raise ConflictException(detail="Subject already exists in this class")

        with self._transaction("Subject already exists in this class"):
            class_subject = self.classes.add_subject(class_id, subject_id, schedule)

        logger.info("Subject %s added to class %s", subject_id, class_id)
        return class_subject

    def remove_subject_from_class(self, principal: Principal, class_id: str, subject_id: str) -> None:
        """Remove a subject and every teacher entry for it from the class."""
        self._require_admin(principal)
        self._get_class(class_id)

        with self._transaction("Class subject changed concurrently"):
            if not self.classes.remove_subject(class_id, subject_id):
                raise NotFoundException(detail="Subject is not part of this class")
            self.users.remove_request_mirrors(class_id, subject_id, RoleInClass.teacher)

        logger.info("Subject %s removed from class %s", subject_id, class_id)

    # Student join requests

    def request_to_join(self, student_id: str, class_id: str) -> ClassStudent:
        """
        Student asks to join `class_id`.

        Raises:
            NotFoundException: Unknown student or class
            ValidationException: Not a student, or already placed in a class
            ConflictException: The student already has an entry for this class
        """
        student = self._get_user(student_id, UserRole.student)
        if student.current_class_id is not None:
            raise ValidationException(detail="Student already belongs to a class")

        self._get_class(class_id)

        if self.classes.get_student_request(class_id, student_id) is not None:
            raise ConflictException(detail="A request for this class already exists")

        with self._transaction("A request for this class already exists"):
            entry = self.classes.add_student_request(class_id, student_id, EnrollmentType.self_request)
            self.users.mirror_request(student_id, class_id, RoleInClass.student)

        logger.info("Student %s requested to join class %s", student_id, class_id)
        return entry

    def resolve_student_request(self, principal: Principal, class_id: str, student_id: str, status,
                                reason: Optional[str] = None,
                                academic_year: Optional[str] = None,
                                term: Optional[Term] = None,
                                subject_ids: Optional[Iterable[str]] = None) -> ClassStudent:
        """
        Approve or reject a pending join request.

        With AUTO_ENROLL_ON_APPROVAL set, approval also opens an active
        enrollment for the academic period given here (or configured as
        default) in the same transaction.
        """
        self._require_admin(principal)
        status = self._resolution_status(status)

        with self._transaction("Student already has an active enrollment for this period"):
            changed = self.classes.resolve_student_request(
                class_id, student_id, status, principal.user_id, reason
            )
            if changed:
                self.users.update_request_mirror(
                    student_id, class_id, RoleInClass.student, status, principal.user_id, reason=reason
                )
                if status == RequestStatus.approved and settings.AUTO_ENROLL_ON_APPROVAL:
                    self._auto_enroll(student_id, class_id, academic_year, term, subject_ids)

        entry = self.classes.get_student_request(class_id, student_id)
        if not changed:
            self._check_unchanged(entry, status, "Student request")
        else:
            logger.info("Student request %s/%s %s by %s", class_id, student_id, status.value, principal.user_id)
        return entry

    # Enrollments

    def enroll_student(self, principal: Principal, student_id: str, class_id: str,
                       academic_year: str, term, subject_ids: Optional[Iterable[str]] = None) -> AcademicEnrollment:
        """
        Open an active enrollment. Subjects default to every subject of the class.

        Raises:
            ConflictException: The student already has an active enrollment for the period
        """
        self._require_admin(principal)
        academic_year, term = self._academic_period(academic_year, term)
        self._get_user(student_id, UserRole.student)
        self._get_class(class_id)

        with self._transaction("Student already has an active enrollment for this period"):
            enrollment = self._open_enrollment(student_id, class_id, academic_year, term, subject_ids)

        logger.info("Student %s enrolled in class %s for %s %s", student_id, class_id, academic_year, term.value)
        return enrollment

    def transfer_enrollment(self, principal: Principal, enrollment_id: str, to_class_id: str,
                            reason: Optional[str] = None) -> AcademicEnrollment:
        """
        Move an active enrollment to another class.

        The old enrollment is closed as transferred and the new one opened in
        the same commit, carrying the enrolled subjects the target class offers.
        """
        self._require_admin(principal)
        enrollment = self._get_enrollment(enrollment_id)
        if enrollment.status != EnrollmentStatus.active:
            raise InvalidStateException(detail=f"Only active enrollments can be transferred (is {enrollment.status.value})")

        self._get_class(to_class_id)
        if to_class_id == enrollment.class_id:
            raise ValidationException(detail="Target class must differ from the current class")

        offered = set(self.classes.class_subject_ids(to_class_id))
        carried = [
            subject.subject_id for subject in enrollment.subjects
            if subject.status == SubjectEnrollmentStatus.enrolled and subject.subject_id in offered
        ]
        from_class_id = enrollment.class_id

        with self._transaction("Student already has an active enrollment for this period"):
            new_enrollment = self.enrollments.transfer_enrollment(enrollment, to_class_id, carried, reason)
            if new_enrollment is None:
                raise InvalidStateException(detail="Enrollment is no longer active")
            self.users.set_current_class(enrollment.student_id, to_class_id)

        logger.info("Enrollment %s transferred from class %s to %s", enrollment_id, from_class_id, to_class_id)
        return new_enrollment

    def complete_enrollment(self, principal: Principal, enrollment_id: str) -> AcademicEnrollment:
        self._require_admin(principal)
        enrollment = self._get_enrollment(enrollment_id)

        with self._transaction("Enrollment changed concurrently"):
            if self.enrollments.complete_enrollment(enrollment_id) == 0:
                raise InvalidStateException(detail="Only active enrollments can be completed")
            self.users.clear_current_class(enrollment.student_id, enrollment.class_id)

        logger.info("Enrollment %s completed", enrollment_id)
        return self._get_enrollment(enrollment_id)

    def drop_subject(self, principal: Principal, enrollment_id: str, subject_id: str) -> EnrollmentSubject:
        self._require_admin(principal)
        enrollment = self._get_enrollment(enrollment_id)
        if enrollment.status != EnrollmentStatus.active:
            raise InvalidStateException(detail="Subjects can only be dropped from active enrollments")

        with self._transaction("Enrollment changed concurrently"):
            changed = self.enrollments.drop_subject(enrollment_id, subject_id)

        subject = self.enrollments.subjects.find_one_by(enrollment_id=enrollment_id, subject_id=subject_id)
        if subject is None:
            raise NotFoundException(detail="Subject is not part of this enrollment")
        self.db.refresh(subject)

        if not changed and subject.status != SubjectEnrollmentStatus.dropped:
            raise InvalidStateException(detail=f"Subject is already {subject.status.value}")
        if changed:
            logger.info("Subject %s dropped from enrollment %s", subject_id, enrollment_id)
        return subject

    # Users

    def change_role(self, principal: Principal, user_id: str, role) -> User:
        """Only admins change roles; the role is otherwise fixed at creation."""
        self._require_admin(principal)
        try:
            role = UserRole(role)
        except ValueError:
            raise ValidationException(detail=f"Unknown role: {role}")

        user = self._get_user(user_id)
        previous = user.role

        with self._transaction("User changed concurrently"):
            self.users.set_role(user_id, role)

        self.db.refresh(user)
        logger.info("User %s role changed from %s to %s by %s", user_id, previous.value, role.value, principal.user_id)
        return user

    # Internals

    @contextmanager
    def _transaction(self, conflict_detail: str):
        """Commit on success; a unique-index collision becomes ConflictException."""
        try:
            yield
            self.users.commit()
        except DuplicateError as e:
            logger.warning("Write collided with an existing row: %s", e)
            raise ConflictException(detail=conflict_detail) from e
        except Exception:
            self.db.rollback()
            raise

    def _require_admin(self, principal: Principal) -> None:
        if not principal.is_admin:
            raise ForbiddenException(detail="Only administrators can perform this action")

    def _resolution_status(self, status) -> RequestStatus:
        try:
            status = RequestStatus(status)
        except ValueError:
            raise ValidationException(detail=f"Unknown status: {status}")
        if status == RequestStatus.pending:
            raise ValidationException(detail="Status must be approved or rejected")
        return status

    def _academic_period(self, academic_year, term):
        try:
            academic_year = validate_academic_year(academic_year)
            term = Term(term)
        except ValueError as e:
            raise ValidationException(detail=str(e))
        if academic_year is None:
            raise ValidationException(detail="Academic year is required")
        return academic_year, term

    def _check_unchanged(self, entry, status: RequestStatus, label: str) -> None:
        """Explain a guarded update that changed nothing."""
        if entry is None:
            raise NotFoundException(detail=f"{label} not found")
        if entry.status != status:
            logger.warning("%s %s is already %s, cannot mark %s", label, entry.id, entry.status.value, status.value)
            raise InvalidStateException(detail=f"{label} is already {entry.status.value}")

    def _get_user(self, user_id: str, role: Optional[UserRole] = None) -> User:
        user = self.users.get_user(user_id)
        if user is None:
            raise NotFoundException(detail=f"User {user_id} not found")
        if role is not None and user.role != role:
            raise ValidationException(detail=f"User {user_id} is not a {role.value}")
        return user

    def _get_class(self, class_id: str) -> SchoolClass:
        school_class = self.classes.get_class(class_id)
        if school_class is None:
            raise NotFoundException(detail=f"Class {class_id} not found")
        return school_class

    def _get_subject(self, subject_id: str) -> Subject:
        subject = self.subjects.get_subject(subject_id)
        if subject is None:
            raise NotFoundException(detail=f"Subject {subject_id} not found")
        return subject

    def _get_enrollment(self, enrollment_id: str) -> AcademicEnrollment:
        enrollment = self.enrollments.get_enrollment(enrollment_id)
        if enrollment is None:
            raise NotFoundException(detail=f"Enrollment {enrollment_id} not found")
        self.db.refresh(enrollment)
        return enrollment

    def _auto_enroll(self, student_id: str, class_id: str, academic_year, term,
                     subject_ids: Optional[Iterable[str]]) -> Optional[AcademicEnrollment]:
        academic_year = academic_year or settings.DEFAULT_ACADEMIC_YEAR
        term = term or settings.DEFAULT_TERM
        if not academic_year or not term:
            logger.warning("No academic period for student %s, approval does not enroll", student_id)
            return None

        academic_year, term = self._academic_period(academic_year, term)
        return self._open_enrollment(student_id, class_id, academic_year, term, subject_ids)

    def _open_enrollment(self, student_id: str, class_id: str, academic_year: str, term: Term,
                         subject_ids: Optional[Iterable[str]]) -> AcademicEnrollment:
        offered = self.classes.class_subject_ids(class_id)
        if subject_ids is None:
            subject_ids = offered
        else:
            subject_ids = list(subject_ids)
            unknown: List[str] = [s for s in subject_ids if s not in offered]
            if unknown:
                raise ValidationException(detail=f"Subjects not offered in this class: {', '.join(unknown)}")

        if self.enrollments.find_active_enrollments(student_id=student_id, academic_year=academic_year, term=term):
            raise ConflictException(detail="Student already has an active enrollment for this period")

        enrollment = self.enrollments.create_enrollment(student_id, class_id, academic_year, term, subject_ids)
        self.users.set_current_class(student_id, class_id, academic_year)
        return enrollment
