"""
Scoping index tests: derived pair sets, SQL listing filters and the
messaging candidate set.
"""

import pytest
from sqlalchemy import Column, String
from sqlalchemy.orm import declarative_base

from classroom_backend.api.exceptions import ForbiddenException, NotFoundException
from classroom_backend.interface.enums import AccessLevel
from classroom_backend.model.base import enum_column, new_id
from classroom_backend.model.school import ClassSubject, SchoolClass
from classroom_backend.permissions import (
    ScopeQueryBuilder,
    messageable_user_ids,
    scoped_class_ids,
    scoped_class_subject_pairs,
)
from classroom_backend.tests.fixtures import approve_teacher, enroll, principal_of

ContentBase = declarative_base()


class LearningContent(ContentBase):
    """Minimal content table for listing filters."""
    __tablename__ = 'learning_content'

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(255))
    owner_id = Column(String(36))
    class_id = Column(String(36))
    subject_id = Column(String(36))
    access_level = Column(enum_column(AccessLevel, 'access_level'))


@pytest.fixture
def graph(test_db, school):
    """Teacher approved for S1 A mathematics, student in S1 A, other student in S1 B."""
    approve_teacher(test_db, school, school.teacher, school.s1a.id, school.math.id)
    approve_teacher(test_db, school, school.other_teacher, school.s1a.id, school.physics.id)
    enroll(test_db, school, school.student, school.s1a.id)
    enroll(test_db, school, school.other_student, school.s1b.id, [school.math.id])
    return school


@pytest.fixture
def contents(engine, test_db, graph):
    ContentBase.metadata.create_all(bind=engine)
    rows = {
        "public": LearningContent(title="public", owner_id="x", access_level=AccessLevel.public),
        "school": LearningContent(title="school", owner_id="x", access_level=AccessLevel.school),
        "s1a-math": LearningContent(title="s1a-math", owner_id="x", class_id=graph.s1a.id,
                                    subject_id=graph.math.id, access_level=AccessLevel.class_),
        "s1a-physics": LearningContent(title="s1a-physics", owner_id="x", class_id=graph.s1a.id,
                                       subject_id=graph.physics.id, access_level=AccessLevel.class_),
        "s1a-whole": LearningContent(title="s1a-whole", owner_id="x", class_id=graph.s1a.id,
                                     access_level=AccessLevel.class_),
        "s1b-math": LearningContent(title="s1b-math", owner_id="x", class_id=graph.s1b.id,
                                    subject_id=graph.math.id, access_level=AccessLevel.class_),
        "own-draft": LearningContent(title="own-draft", owner_id=graph.teacher.id, class_id=graph.s1b.id,
                                     subject_id=graph.history.id, access_level=AccessLevel.class_),
    }
    test_db.add_all(rows.values())
    test_db.commit()
    yield rows
    ContentBase.metadata.drop_all(bind=engine)


def visible_titles(test_db, principal):
    return {c.title for c in ScopeQueryBuilder.build_visible_query(LearningContent, principal, test_db).all()}


class TestScopedPairs:

    def test_teacher_pairs_are_approved_rows(self, test_db, graph):
        assert scoped_class_subject_pairs(graph.teacher_principal, test_db) == {(graph.s1a.id, graph.math.id)}

    def test_pending_request_not_in_pairs(self, test_db, graph, workflow):
        workflow.request_to_teach(graph.teacher.id, graph.s1b.id, graph.history.id)

        assert (graph.s1b.id, graph.history.id) not in scoped_class_subject_pairs(graph.teacher_principal, test_db)

    def test_student_pairs_are_enrolled_subjects(self, test_db, graph, workflow):
        enrollment = workflow.enrollments.find_active_enrollments(student_id=graph.student.id)[0]
        workflow.drop_subject(graph.admin_principal, enrollment.id, graph.history.id)

        assert scoped_class_subject_pairs(graph.student_principal, test_db) == {
            (graph.s1a.id, graph.math.id),
            (graph.s1a.id, graph.physics.id),
        }

    def test_admin_pairs_cover_every_class_subject(self, test_db, graph):
        pairs = scoped_class_subject_pairs(graph.admin_principal, test_db)

        assert len(pairs) == 5
        assert (graph.s1b.id, graph.history.id) in pairs

    def test_class_ids(self, test_db, graph):
        assert scoped_class_ids(graph.teacher_principal, test_db) == {graph.s1a.id}
        assert scoped_class_ids(graph.student_principal, test_db) == {graph.s1a.id}
        assert scoped_class_ids(graph.admin_principal, test_db) == {graph.s1a.id, graph.s1b.id}

    def test_completed_enrollment_leaves_scope(self, test_db, graph, workflow):
        enrollment = workflow.enrollments.find_active_enrollments(student_id=graph.student.id)[0]
        workflow.complete_enrollment(graph.admin_principal, enrollment.id)

        assert scoped_class_subject_pairs(graph.student_principal, test_db) == set()
        assert scoped_class_ids(graph.student_principal, test_db) == set()


class TestScopeQueryBuilder:

    def test_filter_class_subjects_for_teacher(self, test_db, graph):
        query = ScopeQueryBuilder.filter_by_scope(test_db.query(ClassSubject), ClassSubject, graph.teacher_principal)

        assert {(cs.class_id, cs.subject_id) for cs in query.all()} == {(graph.s1a.id, graph.math.id)}

    def test_filter_classes_for_student(self, test_db, graph):
        query = ScopeQueryBuilder.filter_by_scope(test_db.query(SchoolClass), SchoolClass, principal_of(graph.other_student))

        assert [c.id for c in query.all()] == [graph.s1b.id]

    def test_admin_query_unfiltered(self, test_db, graph):
        base = test_db.query(SchoolClass)

        assert ScopeQueryBuilder.filter_by_scope(base, SchoolClass, graph.admin_principal) is base

    def test_visible_content_for_teacher(self, test_db, graph, contents):
        assert visible_titles(test_db, graph.teacher_principal) == {
            "public", "school", "s1a-math", "s1a-whole", "own-draft",
        }

    def test_visible_content_for_student(self, test_db, graph, contents):
        assert visible_titles(test_db, graph.student_principal) == {
            "public", "school", "s1a-math", "s1a-physics", "s1a-whole",
        }

    def test_visible_content_for_admin(self, test_db, graph, contents):
        assert visible_titles(test_db, graph.admin_principal) == set(contents)


class TestMessageableUsers:

    def test_teacher_reaches_students_of_approved_classes(self, test_db, graph):
        assert messageable_user_ids(graph.teacher_principal, test_db) == {graph.student.id, graph.admin.id}

    def test_student_reaches_teachers_of_enrolled_classes(self, test_db, graph):
        assert messageable_user_ids(graph.student_principal, test_db) == {
            graph.teacher.id, graph.other_teacher.id, graph.admin.id,
        }

    def test_student_without_teachers_reaches_admins(self, test_db, graph):
        assert messageable_user_ids(principal_of(graph.other_student), test_db) == {graph.admin.id}

    def test_subject_filter(self, test_db, graph):
        candidates = messageable_user_ids(graph.student_principal, test_db, graph.s1a.id, graph.physics.id)

        assert candidates == {graph.other_teacher.id, graph.admin.id}

    def test_subject_filter_without_class_keeps_to_taught_classes(self, test_db, graph):
        approve_teacher(test_db, graph, graph.teacher, graph.s1b.id, graph.history.id)

        candidates = messageable_user_ids(graph.teacher_principal, test_db, subject_id=graph.math.id)

        assert graph.other_student.id not in candidates
        assert candidates == {graph.student.id, graph.admin.id}

    def test_admin_reaches_everyone(self, test_db, graph):
        assert messageable_user_ids(graph.admin_principal, test_db) == {
            graph.teacher.id, graph.other_teacher.id, graph.student.id, graph.other_student.id,
        }

    def test_class_filter_outside_scope_is_forbidden(self, test_db, graph):
        with pytest.raises(ForbiddenException):
            messageable_user_ids(graph.teacher_principal, test_db, class_id=graph.s1b.id)

    def test_unknown_class_is_not_found(self, test_db, graph):
        with pytest.raises(NotFoundException):
            messageable_user_ids(graph.teacher_principal, test_db, class_id="missing")
