from .base import Base, metadata
from .auth import User, TeacherQualification, ClassRequest
from .school import Subject, SchoolClass, ClassSubject, ClassSubjectTeacher, ClassStudent
from .enrollment import AcademicEnrollment, EnrollmentSubject

# Import all models to ensure relationships are properly set up
from . import auth, school, enrollment

__all__ = [
    'Base',
    'metadata',
    # Auth models
    'User',
    'TeacherQualification',
    'ClassRequest',
    # School structure
    'Subject',
    'SchoolClass',
    'ClassSubject',
    'ClassSubjectTeacher',
    'ClassStudent',
    # Enrollment
    'AcademicEnrollment',
    'EnrollmentSubject',
]
