"""
End-to-end scenarios: workflow writes followed by resolver reads.
"""

import pytest

from classroom_backend.api.exceptions import InvalidStateException
from classroom_backend.interface.enums import (
    AccessLevel, EnrollmentStatus, RequestStatus, ResourceType
)
from classroom_backend.interface.resources import ResourceDescriptor
from classroom_backend.permissions import is_authorized
from classroom_backend.repositories.enrollments import EnrollmentRepository


def content_in(class_id, subject_id):
    return ResourceDescriptor(
        resource_type=ResourceType.content,
        owner_id="uploader",
        class_id=class_id,
        subject_id=subject_id,
        access_level=AccessLevel.class_,
    )


def attendance_in(class_id, subject_id):
    return ResourceDescriptor(resource_type=ResourceType.attendance, class_id=class_id, subject_id=subject_id)


def test_teacher_request_then_approval_grants_access(test_db, school, workflow):
    entry = workflow.request_to_teach(school.teacher.id, school.s1a.id, school.math.id)
    assert entry.status == RequestStatus.pending
    assert not is_authorized(school.teacher_principal, content_in(school.s1a.id, school.math.id), test_db)

    workflow.resolve_teacher_request(
        school.admin_principal, school.s1a.id, school.math.id, school.teacher.id, RequestStatus.approved
    )

    assert is_authorized(school.teacher_principal, content_in(school.s1a.id, school.math.id), test_db)


def test_teacher_rejection_is_permanent(test_db, school, workflow):
    workflow.request_to_teach(school.teacher.id, school.s1a.id, school.math.id)
    workflow.resolve_teacher_request(
        school.admin_principal, school.s1a.id, school.math.id, school.teacher.id, RequestStatus.rejected
    )

    with pytest.raises(InvalidStateException):
        workflow.resolve_teacher_request(
            school.admin_principal, school.s1a.id, school.math.id, school.teacher.id, RequestStatus.approved
        )

    assert not is_authorized(school.teacher_principal, content_in(school.s1a.id, school.math.id), test_db)


def test_student_enrollment_scopes_attendance(test_db, school, workflow):
    workflow.enroll_student(
        school.admin_principal, school.student.id, school.s1a.id, "2025", "Term 1", [school.math.id]
    )

    assert is_authorized(school.student_principal, attendance_in(school.s1a.id, school.math.id), test_db)
    assert not is_authorized(school.student_principal, attendance_in(school.s1a.id, school.physics.id), test_db)


def test_transfer_swaps_access_atomically(test_db, school, workflow):
    old = workflow.enroll_student(
        school.admin_principal, school.student.id, school.s1a.id, "2025", "Term 1",
        [school.math.id, school.physics.id],
    )

    new = workflow.transfer_enrollment(school.admin_principal, old.id, school.s1b.id, reason="Stream change")

    test_db.refresh(old)
    assert old.status == EnrollmentStatus.transferred
    assert old.transfer_to_class_id == school.s1b.id
    assert new.status == EnrollmentStatus.active
    assert new.transfer_from_class_id == school.s1a.id
    # Physics is not offered in S1 B, mathematics carries over
    assert {s.subject_id for s in new.subjects} == {school.math.id}

    active = EnrollmentRepository(test_db).find_active_enrollments(student_id=school.student.id)
    assert [e.class_id for e in active] == [school.s1b.id]

    assert not is_authorized(school.student_principal, attendance_in(school.s1a.id, school.math.id), test_db)
    assert is_authorized(school.student_principal, attendance_in(school.s1b.id, school.math.id), test_db)


def test_admin_allowed_regardless_of_graph(test_db, school):
    no_class = ResourceDescriptor(resource_type=ResourceType.assignment)

    assert is_authorized(school.admin_principal, no_class, test_db)
    assert is_authorized(school.admin_principal, attendance_in(school.s1b.id, school.physics.id), test_db)
