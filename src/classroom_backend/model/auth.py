from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, String, func
)
from sqlalchemy.orm import relationship

from classroom_backend.interface.enums import RequestStatus, RoleInClass, UserRole
from .base import Base, enum_column, new_id


class User(Base):
    __tablename__ = 'user'
    __table_args__ = (
        Index('user_role_idx', 'role'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(320), unique=True, nullable=False)
    role = Column(enum_column(UserRole, 'user_role'), nullable=False, default=UserRole.student)
    is_active = Column(Boolean, nullable=False, default=True)

    # Student profile
    current_class_id = Column(ForeignKey('school_class.id', ondelete='SET NULL'))
    academic_year = Column(String(4))
    student_number = Column(String(64), unique=True)

    # Teacher profile
    teacher_number = Column(String(64), unique=True)
    department = Column(String(255))

    # Relationships
    current_class = relationship('SchoolClass', foreign_keys=[current_class_id])
    qualifications = relationship('TeacherQualification', back_populates='user', cascade='all, delete-orphan', lazy='select')
    class_requests = relationship('ClassRequest', foreign_keys='ClassRequest.user_id', back_populates='user', cascade='all, delete-orphan', lazy='select')

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class TeacherQualification(Base):
    __tablename__ = 'teacher_qualification'
    __table_args__ = (
        Index('teacher_qualification_user_subject_key', 'user_id', 'subject_id', unique=True),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    subject_id = Column(ForeignKey('subject.id', ondelete='CASCADE'), nullable=False)
    qualification_level = Column(String(255))
    years_of_experience = Column(Integer)
    institution = Column(String(255))
    year_obtained = Column(Integer)

    user = relationship('User', back_populates='qualifications')
    subject = relationship('Subject')


class ClassRequest(Base):
    """Per-user mirror of class and subject requests.

    The ClassSubjectTeacher and ClassStudent rows are authoritative, this
    table only exists so a user can list their own requests cheaply.
    """
    __tablename__ = 'class_request'
    __table_args__ = (
        Index('class_request_user_idx', 'user_id', 'status'),
        Index('class_request_tuple_key', 'user_id', 'class_id', 'subject_id', 'role_in_class', unique=True),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    class_id = Column(ForeignKey('school_class.id', ondelete='CASCADE'), nullable=False)
    subject_id = Column(ForeignKey('subject.id', ondelete='CASCADE'))
    role_in_class = Column(enum_column(RoleInClass, 'role_in_class'), nullable=False)
    status = Column(enum_column(RequestStatus, 'request_status'), nullable=False, default=RequestStatus.pending)
    requested_at = Column(DateTime(True), nullable=False, server_default=func.now())
    processed_at = Column(DateTime(True))
    processed_by = Column(ForeignKey('user.id', ondelete='SET NULL'))
    reason = Column(String(1024))

    user = relationship('User', foreign_keys=[user_id], back_populates='class_requests')
