from enum import Enum


class UserRole(str, Enum):
    admin = "admin"
    teacher = "teacher"
    student = "student"


class RequestStatus(str, Enum):
    """Workflow state of a teacher assignment or student join request."""
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class EnrollmentStatus(str, Enum):
    active = "active"
    completed = "completed"
    transferred = "transferred"


class SubjectEnrollmentStatus(str, Enum):
    enrolled = "enrolled"
    completed = "completed"
    dropped = "dropped"


class Term(str, Enum):
    term_1 = "Term 1"
    term_2 = "Term 2"
    term_3 = "Term 3"


class SubjectCategory(str, Enum):
    compulsory = "compulsory"
    elective = "elective"


class EnrollmentType(str, Enum):
    self_request = "self"
    admin = "admin"


class RoleInClass(str, Enum):
    teacher = "teacher"
    student = "student"


class Weekday(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"


class AccessLevel(str, Enum):
    class_ = "class"
    school = "school"
    public = "public"


class ResourceType(str, Enum):
    content = "content"
    attendance = "attendance"
    gradebook = "gradebook"
    assignment = "assignment"
    submission = "submission"
    feedback = "feedback"
    message = "message"
    live_session = "live_session"
    calendar_event = "calendar_event"


def enum_values(enum_cls) -> list:
    return [member.value for member in enum_cls]
