from typing import Optional
from sqlalchemy.orm import Session

from classroom_backend.interface.classes import SubjectCreate
from classroom_backend.model.school import Subject
from .base import BaseRepository


class SubjectRepository(BaseRepository[Subject]):
    """Repository for Subject entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db, Subject)

    def get_subject(self, subject_id: str) -> Optional[Subject]:
        return self.get_by_id_optional(subject_id)

    def find_by_code(self, code: str) -> Optional[Subject]:
        return self.find_one_by(code=code.strip().upper())

    def create_subject(self, data: SubjectCreate) -> Subject:
        return self.create(Subject(**data.model_dump()))
