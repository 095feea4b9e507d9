from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, field_validator

from classroom_backend.interface.base import validate_academic_year
from classroom_backend.interface.enums import (
    EnrollmentStatus, SubjectEnrollmentStatus, Term
)


class EnrollmentCreate(BaseModel):
    student_id: str
    class_id: str
    academic_year: str
    term: Term
    subject_ids: Optional[List[str]] = None

    @field_validator('academic_year', mode='before')
    @classmethod
    def check_year(cls, value):
        return validate_academic_year(value)


class EnrollmentSubjectGet(BaseModel):
    subject_id: str
    status: SubjectEnrollmentStatus
    enrollment_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class EnrollmentGet(BaseModel):
    id: str
    student_id: str
    class_id: str
    academic_year: str
    term: Term
    status: EnrollmentStatus
    enrollment_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    transfer_from_class_id: Optional[str] = None
    transfer_to_class_id: Optional[str] = None
    transfer_reason: Optional[str] = None
    subjects: List[EnrollmentSubjectGet] = []

    model_config = ConfigDict(from_attributes=True)


class EnrollmentQuery(BaseModel):
    student_id: Optional[str] = None
    class_id: Optional[str] = None
    academic_year: Optional[str] = None
    term: Optional[Term] = None

    @field_validator('academic_year', mode='before')
    @classmethod
    def check_year(cls, value):
        return validate_academic_year(value)
