from typing import FrozenSet, Optional
from pydantic import BaseModel, ConfigDict, Field

from classroom_backend.api.exceptions import ErrorKind
from classroom_backend.interface.enums import AccessLevel, ResourceType


class ResourceDescriptor(BaseModel):
    """What a controller knows about the resource it is guarding.

    `owner_id` is the creator/uploader/recorder/teacher-of-record.
    `participant_ids` are other users named directly by the resource, e.g.
    the recipient of a message or the student a gradebook entry belongs to.
    """
    resource_type: ResourceType
    owner_id: Optional[str] = None
    class_id: Optional[str] = None
    subject_id: Optional[str] = None
    access_level: Optional[AccessLevel] = None
    participant_ids: FrozenSet[str] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True)

    @property
    def is_class_scoped(self) -> bool:
        return self.access_level == AccessLevel.class_


class Decision(BaseModel):
    allow: bool
    reason: Optional[ErrorKind] = None
    detail: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allow

    @classmethod
    def allowed(cls, detail: Optional[str] = None) -> "Decision":
        return cls(allow=True, detail=detail)

    @classmethod
    def forbidden(cls, detail: Optional[str] = None) -> "Decision":
        return cls(allow=False, reason=ErrorKind.FORBIDDEN, detail=detail)
