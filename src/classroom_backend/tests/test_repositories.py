"""
Repository tests against SQLite: the database-level guards the workflow
relies on.
"""

import re
import pytest

from classroom_backend.interface.classes import SchoolClassCreate
from classroom_backend.interface.enums import EnrollmentStatus, RequestStatus, Term
from classroom_backend.repositories import (
    ClassRepository, DuplicateError, EnrollmentRepository, NotFoundError, generate_class_code
)


class TestClassRepository:

    def test_generated_code_format(self):
        assert re.match(r"^S2-SCIENCE-[A-Z0-9]{4}$", generate_class_code("S2", "science"))

    def test_create_class_derives_code(self, test_db):
        school_class = ClassRepository(test_db).create_class(SchoolClassCreate(name="Senior 3 C", level="S3", stream="C"))

        assert school_class.code.startswith("S3-C-")

    def test_explicit_duplicate_code(self, test_db):
        classes = ClassRepository(test_db)
        classes.create_class(SchoolClassCreate(name="One", level="S1", stream="A", code="s1-a-main"))

        with pytest.raises(DuplicateError):
            classes.create_class(SchoolClassCreate(name="Two", level="S1", stream="A", code="S1-A-MAIN"))

    def test_find_by_code_is_case_insensitive_on_input(self, test_db, school):
        assert ClassRepository(test_db).find_by_code(school.s1a.code.lower()).id == school.s1a.id

    def test_unique_index_guards_teacher_entries(self, test_db, school):
        classes = ClassRepository(test_db)
        classes.add_teacher_request(school.s1a.id, school.math.id, school.teacher.id)
        classes.commit()

        with pytest.raises(DuplicateError):
            classes.add_teacher_request(school.s1a.id, school.math.id, school.teacher.id)

    def test_guarded_update_changes_only_pending(self, test_db, school):
        classes = ClassRepository(test_db)
        classes.add_teacher_request(school.s1a.id, school.math.id, school.teacher.id)
        classes.commit()

        first = classes.resolve_teacher_request(
            school.s1a.id, school.math.id, school.teacher.id, RequestStatus.approved, school.admin.id
        )
        second = classes.resolve_teacher_request(
            school.s1a.id, school.math.id, school.teacher.id, RequestStatus.rejected, school.admin.id
        )

        assert (first, second) == (1, 0)
        entry = classes.get_teacher_assignment(school.s1a.id, school.math.id, school.teacher.id)
        assert entry.status == RequestStatus.approved
        assert entry.approved_at is not None

    def test_get_by_id_raises(self, test_db):
        with pytest.raises(NotFoundError):
            ClassRepository(test_db).get_by_id("missing")


class TestEnrollmentRepository:

    def test_partial_index_allows_one_active_per_period(self, test_db, school):
        enrollments = EnrollmentRepository(test_db)
        enrollments.create_enrollment(school.student.id, school.s1a.id, "2025", Term.term_1, [school.math.id])
        enrollments.commit()

        with pytest.raises(DuplicateError):
            enrollments.create_enrollment(school.student.id, school.s1b.id, "2025", Term.term_1, [school.math.id])

    def test_inactive_rows_do_not_block(self, test_db, school):
        enrollments = EnrollmentRepository(test_db)
        first = enrollments.create_enrollment(school.student.id, school.s1a.id, "2025", Term.term_1, [])
        enrollments.complete_enrollment(first.id)
        enrollments.create_enrollment(school.student.id, school.s1b.id, "2025", Term.term_1, [])
        enrollments.commit()

        assert [e.class_id for e in enrollments.find_active_enrollments(student_id=school.student.id)] == [school.s1b.id]

    def test_duplicate_subjects_collapse(self, test_db, school):
        enrollments = EnrollmentRepository(test_db)
        enrollment = enrollments.create_enrollment(
            school.student.id, school.s1a.id, "2025", Term.term_1, [school.math.id, school.math.id]
        )
        enrollments.commit()

        assert len(enrollment.subjects) == 1

    def test_transfer_of_inactive_enrollment_returns_none(self, test_db, school):
        enrollments = EnrollmentRepository(test_db)
        enrollment = enrollments.create_enrollment(school.student.id, school.s1a.id, "2025", Term.term_1, [])
        enrollments.complete_enrollment(enrollment.id)
        enrollments.commit()

        assert enrollments.transfer_enrollment(enrollment, school.s1b.id, []) is None

    def test_mark_transferred_is_guarded(self, test_db, school):
        enrollments = EnrollmentRepository(test_db)
        enrollment = enrollments.create_enrollment(school.student.id, school.s1a.id, "2025", Term.term_1, [])
        enrollments.commit()

        assert enrollments.mark_transferred(enrollment.id, school.s1b.id) == 1
        assert enrollments.mark_transferred(enrollment.id, school.s1b.id) == 0
        enrollments.commit()
        test_db.refresh(enrollment)
        assert enrollment.status == EnrollmentStatus.transferred
