from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, String, func
)
from sqlalchemy.orm import relationship

from classroom_backend.interface.enums import (
    EnrollmentType, RequestStatus, SubjectCategory, Weekday
)
from .base import Base, enum_column, new_id


class Subject(Base):
    __tablename__ = 'subject'

    id = Column(String(36), primary_key=True, default=new_id)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    name = Column(String(255), nullable=False)
    code = Column(String(64), unique=True, nullable=False)
    category = Column(enum_column(SubjectCategory, 'subject_category'), nullable=False, default=SubjectCategory.compulsory)
    sub_category = Column(String(255))
    description = Column(String(4096))
    is_active = Column(Boolean, nullable=False, default=True)

    class_subjects = relationship('ClassSubject', back_populates='subject', cascade='all, delete-orphan', lazy='select')


class SchoolClass(Base):
    __tablename__ = 'school_class'

    id = Column(String(36), primary_key=True, default=new_id)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    name = Column(String(255), nullable=False)
    code = Column(String(64), unique=True, nullable=False)
    level = Column(String(64), nullable=False)
    stream = Column(String(64), nullable=False)
    description = Column(String(500))
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    class_subjects = relationship('ClassSubject', back_populates='school_class', cascade='all, delete-orphan', lazy='select')
    teacher_assignments = relationship('ClassSubjectTeacher', back_populates='school_class', cascade='all, delete-orphan', lazy='select')
    students = relationship('ClassStudent', back_populates='school_class', cascade='all, delete-orphan', lazy='select')


class ClassSubject(Base):
    __tablename__ = 'class_subject'
    __table_args__ = (
        Index('class_subject_class_subject_key', 'class_id', 'subject_id', unique=True),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    class_id = Column(ForeignKey('school_class.id', ondelete='CASCADE'), nullable=False)
    subject_id = Column(ForeignKey('subject.id', ondelete='CASCADE'), nullable=False)
    day = Column(enum_column(Weekday, 'weekday'))
    start_time = Column(String(5))
    end_time = Column(String(5))
    venue = Column(String(255))

    school_class = relationship('SchoolClass', back_populates='class_subjects')
    subject = relationship('Subject', back_populates='class_subjects')


class ClassSubjectTeacher(Base):
    """A teacher's assignment to one subject of one class.

    One row per (class, subject, teacher) whatever its status, so a second
    request for the same tuple always collides with the unique index.
    """
    __tablename__ = 'class_subject_teacher'
    __table_args__ = (
        Index('class_subject_teacher_key', 'class_id', 'subject_id', 'teacher_id', unique=True),
        Index('class_subject_teacher_teacher_idx', 'teacher_id', 'status'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    class_id = Column(ForeignKey('school_class.id', ondelete='CASCADE'), nullable=False)
    subject_id = Column(ForeignKey('subject.id', ondelete='CASCADE'), nullable=False)
    teacher_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    status = Column(enum_column(RequestStatus, 'request_status'), nullable=False, default=RequestStatus.pending)
    is_lead_teacher = Column(Boolean, nullable=False, default=False)
    requested_at = Column(DateTime(True), nullable=False, server_default=func.now())
    approved_at = Column(DateTime(True))
    processed_at = Column(DateTime(True))
    assigned_by = Column(ForeignKey('user.id', ondelete='SET NULL'))
    processed_by = Column(ForeignKey('user.id', ondelete='SET NULL'))
    reason = Column(String(1024))

    school_class = relationship('SchoolClass', back_populates='teacher_assignments')
    subject = relationship('Subject')
    teacher = relationship('User', foreign_keys=[teacher_id])


class ClassStudent(Base):
    __tablename__ = 'class_student'
    __table_args__ = (
        Index('class_student_key', 'class_id', 'student_id', unique=True),
        Index('class_student_student_idx', 'student_id', 'status'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    class_id = Column(ForeignKey('school_class.id', ondelete='CASCADE'), nullable=False)
    student_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    status = Column(enum_column(RequestStatus, 'request_status'), nullable=False, default=RequestStatus.pending)
    enrollment_type = Column(enum_column(EnrollmentType, 'enrollment_type'), nullable=False, default=EnrollmentType.self_request)
    requested_at = Column(DateTime(True), nullable=False, server_default=func.now())
    approved_at = Column(DateTime(True))
    processed_at = Column(DateTime(True))
    processed_by = Column(ForeignKey('user.id', ondelete='SET NULL'))
    reason = Column(String(1024))

    school_class = relationship('SchoolClass', back_populates='students')
    student = relationship('User', foreign_keys=[student_id])
