from sqlalchemy import (
    Column, DateTime, ForeignKey, Index, String, func, text
)
from sqlalchemy.orm import relationship

from classroom_backend.interface.enums import (
    EnrollmentStatus, SubjectEnrollmentStatus, Term
)
from .base import Base, enum_column, new_id


class AcademicEnrollment(Base):
    __tablename__ = 'academic_enrollment'
    __table_args__ = (
        Index('academic_enrollment_student_status_idx', 'student_id', 'status'),
        Index('academic_enrollment_class_period_idx', 'class_id', 'academic_year', 'term'),
        # At most one active enrollment per student and period
        Index(
            'academic_enrollment_one_active_key',
            'student_id', 'academic_year', 'term',
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    student_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    class_id = Column(ForeignKey('school_class.id', ondelete='CASCADE'), nullable=False)
    academic_year = Column(String(4), nullable=False)
    term = Column(enum_column(Term, 'term'), nullable=False)
    status = Column(enum_column(EnrollmentStatus, 'enrollment_status'), nullable=False, default=EnrollmentStatus.active)
    enrollment_date = Column(DateTime(True), nullable=False, server_default=func.now())
    completion_date = Column(DateTime(True))

    # Transfer details
    transfer_from_class_id = Column(ForeignKey('school_class.id', ondelete='SET NULL'))
    transfer_to_class_id = Column(ForeignKey('school_class.id', ondelete='SET NULL'))
    transfer_date = Column(DateTime(True))
    transfer_reason = Column(String(1024))

    # Relationships
    student = relationship('User', foreign_keys=[student_id])
    school_class = relationship('SchoolClass', foreign_keys=[class_id])
    subjects = relationship('EnrollmentSubject', back_populates='enrollment', cascade='all, delete-orphan', lazy='select')


class EnrollmentSubject(Base):
    __tablename__ = 'enrollment_subject'
    __table_args__ = (
        Index('enrollment_subject_key', 'enrollment_id', 'subject_id', unique=True),
        Index('enrollment_subject_subject_idx', 'subject_id', 'status'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    enrollment_id = Column(ForeignKey('academic_enrollment.id', ondelete='CASCADE'), nullable=False)
    subject_id = Column(ForeignKey('subject.id', ondelete='CASCADE'), nullable=False)
    status = Column(enum_column(SubjectEnrollmentStatus, 'subject_enrollment_status'), nullable=False, default=SubjectEnrollmentStatus.enrolled)
    enrollment_date = Column(DateTime(True), nullable=False, server_default=func.now())
    completion_date = Column(DateTime(True))

    enrollment = relationship('AcademicEnrollment', back_populates='subjects')
    subject = relationship('Subject')
