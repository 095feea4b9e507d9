from typing import Any, Optional, Type
from sqlalchemy import and_, exists, false, or_, select, true
from sqlalchemy.orm import Query, Session, aliased

from classroom_backend.interface.enums import (
    AccessLevel, EnrollmentStatus, RequestStatus, SubjectEnrollmentStatus, UserRole
)
from classroom_backend.model.enrollment import AcademicEnrollment, EnrollmentSubject
from classroom_backend.model.school import ClassSubjectTeacher, SchoolClass
from classroom_backend.permissions.principal import Principal


class ScopeQueryBuilder:
    """Utility class for building class/subject scoped listing queries.

    Mirrors the resolver's class membership rules as SQL so that "my
    classes", "my content" and "my gradebook" listings filter in the
    database instead of loading rows and checking them one by one.
    """

    @classmethod
    def teacher_class_ids_subquery(cls, user_id: str):
        """Classes where the teacher is approved for at least one subject"""
        cst = aliased(ClassSubjectTeacher)
        return select(cst.class_id).where(
            cst.teacher_id == user_id,
            cst.status == RequestStatus.approved,
        )

    @classmethod
    def student_class_ids_subquery(cls, user_id: str):
        """Classes with an active enrollment of the student"""
        ae = aliased(AcademicEnrollment)
        return select(ae.class_id).where(
            ae.student_id == user_id,
            ae.status == EnrollmentStatus.active,
        )

    @classmethod
    def class_ids_subquery(cls, principal: Principal):
        if principal.role == UserRole.teacher:
            return cls.teacher_class_ids_subquery(principal.user_id)
        return cls.student_class_ids_subquery(principal.user_id)

    @classmethod
    def pair_exists(cls, principal: Principal, class_column, subject_column):
        """Correlated EXISTS for (class_column, subject_column) being one of the principal's pairs"""
        # Aliased so the EXISTS still correlates when the outer entity is one of these tables
        if principal.role == UserRole.teacher:
            cst = aliased(ClassSubjectTeacher)
            return exists().where(
                cst.teacher_id == principal.user_id,
                cst.status == RequestStatus.approved,
                cst.class_id == class_column,
                cst.subject_id == subject_column,
            )

        ae = aliased(AcademicEnrollment)
        es = aliased(EnrollmentSubject)
        return exists().where(
            ae.student_id == principal.user_id,
            ae.status == EnrollmentStatus.active,
            ae.class_id == class_column,
            es.enrollment_id == ae.id,
            es.status == SubjectEnrollmentStatus.enrolled,
            es.subject_id == subject_column,
        )

    @classmethod
    def scope_clause(cls, entity: Type[Any], principal: Principal):
        """
        WHERE clause restricting `entity` rows to the principal's classes.
        Rows with a subject need the exact pair, rows without one only the class.
        """
        if principal.user_id is None:
            return false()

        table_keys = entity.__table__.columns.keys()

        if entity.__tablename__ == SchoolClass.__tablename__:
            return entity.id.in_(cls.class_ids_subquery(principal))

        if "class_id" not in table_keys:
            return false()

        if "subject_id" in table_keys:
            return or_(
                and_(entity.subject_id.is_(None), entity.class_id.in_(cls.class_ids_subquery(principal))),
                cls.pair_exists(principal, entity.class_id, entity.subject_id),
            )

        return entity.class_id.in_(cls.class_ids_subquery(principal))

    @classmethod
    def filter_by_scope(cls, query: Query, entity: Type[Any], principal: Principal, db: Optional[Session] = None) -> Query:
        """Filter query to rows in the principal's class/subject scope; admins see everything"""
        if principal.scope().unrestricted:
            return query
        return query.filter(cls.scope_clause(entity, principal))

    @classmethod
    def visible_resource_filter(cls, entity: Type[Any], principal: Principal, owner_column: str = "owner_id"):
        """
        Listing filter for resources with an access level: public and school
        rows, rows the principal owns, and class rows inside their scope.
        """
        if principal.scope().unrestricted:
            return true()

        clauses = [entity.access_level.in_([AccessLevel.public, AccessLevel.school])]

        if principal.user_id is not None:
            clauses.append(getattr(entity, owner_column) == principal.user_id)
            clauses.append(and_(
                entity.access_level == AccessLevel.class_,
                cls.scope_clause(entity, principal),
            ))

        return or_(*clauses)

    @classmethod
    def build_visible_query(cls, entity: Type[Any], principal: Principal, db: Session,
                            owner_column: str = "owner_id") -> Query:
        return db.query(entity).filter(cls.visible_resource_filter(entity, principal, owner_column))
