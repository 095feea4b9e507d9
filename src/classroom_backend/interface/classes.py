from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, field_validator

from classroom_backend.interface.base import BaseEntityList
from classroom_backend.interface.enums import (
    EnrollmentType, RequestStatus, SubjectCategory, Weekday
)


class SubjectCreate(BaseModel):
    name: str
    code: str
    category: SubjectCategory = SubjectCategory.compulsory
    sub_category: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True

    @field_validator('code')
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return value.strip().upper()


class SubjectGet(BaseEntityList):
    id: str
    name: str
    code: str
    category: SubjectCategory
    sub_category: Optional[str] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class SchoolClassCreate(BaseModel):
    name: str
    level: str
    stream: str
    code: Optional[str] = None
    description: Optional[str] = None

    @field_validator('description')
    @classmethod
    def limit_description(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) > 500:
            raise ValueError("description must be at most 500 characters")
        return value


class SchoolClassGet(BaseEntityList):
    id: str
    name: str
    code: str
    level: str
    stream: str
    description: Optional[str] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ClassSubjectSchedule(BaseModel):
    day: Optional[Weekday] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    venue: Optional[str] = None


class TeacherAssignmentGet(BaseModel):
    id: str
    class_id: str
    subject_id: str
    teacher_id: str
    status: RequestStatus
    is_lead_teacher: bool
    requested_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ClassStudentGet(BaseModel):
    id: str
    class_id: str
    student_id: str
    status: RequestStatus
    enrollment_type: EnrollmentType
    requested_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RequestResolution(BaseModel):
    """Admin decision on a pending request.

    Only the two terminal states are accepted; `pending` and unknown
    values fail validation at the boundary.
    """
    status: RequestStatus
    reason: Optional[str] = None

    @field_validator('status')
    @classmethod
    def terminal_status(cls, value: RequestStatus) -> RequestStatus:
        if value == RequestStatus.pending:
            raise ValueError("a request can only be resolved as approved or rejected")
        return value


class ScopedClassList(BaseModel):
    class_id: str
    subject_ids: List[str] = []
