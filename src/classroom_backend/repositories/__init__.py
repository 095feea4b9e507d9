"""
Repository pattern implementation for direct database access.

This package is the entity store of the engine: every read the resolver
performs and every write the workflow performs goes through one of these
classes.
"""

from .base import (
    BaseRepository,
    RepositoryError,
    NotFoundError,
    DuplicateError
)
from .classes import ClassRepository, generate_class_code
from .enrollments import EnrollmentRepository
from .subjects import SubjectRepository
from .users import UserRepository

__all__ = [
    "BaseRepository",
    "RepositoryError",
    "NotFoundError",
    "DuplicateError",
    "ClassRepository",
    "EnrollmentRepository",
    "SubjectRepository",
    "UserRepository",
    "generate_class_code",
]
