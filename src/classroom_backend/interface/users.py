from typing import Optional
from pydantic import BaseModel, ConfigDict

from classroom_backend.interface.enums import UserRole


class UserCreate(BaseModel):
    first_name: str
    last_name: str
    email: str
    role: UserRole = UserRole.student
    student_number: Optional[str] = None
    teacher_number: Optional[str] = None
    department: Optional[str] = None


class UserGet(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    role: UserRole
    is_active: bool
    current_class_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class QualificationCreate(BaseModel):
    subject_id: str
    qualification_level: Optional[str] = None
    years_of_experience: Optional[int] = None
    institution: Optional[str] = None
    year_obtained: Optional[int] = None
