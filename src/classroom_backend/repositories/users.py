"""
User repository: users, teacher qualifications and the per-user request
mirror.
"""

from datetime import datetime, timezone
from typing import List, Optional, Set
from sqlalchemy import select
from sqlalchemy.orm import Session

from classroom_backend.interface.enums import RequestStatus, RoleInClass, UserRole
from classroom_backend.interface.users import QualificationCreate, UserCreate
from classroom_backend.model.auth import ClassRequest, TeacherQualification, User
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_user(self, user_id: str) -> Optional[User]:
        return self.get_by_id_optional(user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.find_one_by(email=email)

    def create_user(self, data: UserCreate) -> User:
        return self.create(User(**data.model_dump()))

    def set_role(self, user_id: str, role: UserRole) -> int:
        return self.update_where({"role": role}, User.id == user_id)

    def set_current_class(self, user_id: str, class_id: Optional[str],
                          academic_year: Optional[str] = None) -> int:
        values = {"current_class_id": class_id}
        if academic_year is not None:
            values["academic_year"] = academic_year
        return self.update_where(values, User.id == user_id)

    def clear_current_class(self, user_id: str, class_id: str) -> int:
        """Unset current_class_id only if it still points at `class_id`."""
        return self.update_where(
            {"current_class_id": None},
            User.id == user_id,
            User.current_class_id == class_id,
        )

    def ids_with_role(self, roles: List[UserRole], active_only: bool = True) -> Set[str]:
        stmt = select(User.id).where(User.role.in_(roles))
        if active_only:
            stmt = stmt.where(User.is_active.is_(True))
        return {row[0] for row in self.db.execute(stmt).all()}

    # Qualifications

    def add_qualification(self, user_id: str, data: QualificationCreate) -> TeacherQualification:
        qualification = TeacherQualification(user_id=user_id, **data.model_dump())
        BaseRepository(self.db, TeacherQualification).insert_guarded(qualification)
        self.commit()
        return qualification

    def has_qualification(self, user_id: str, subject_id: str) -> bool:
        return (
            self.db.query(TeacherQualification.id)
            .filter(TeacherQualification.user_id == user_id, TeacherQualification.subject_id == subject_id)
            .first()
        ) is not None

    # Request mirror

    def mirror_request(self, user_id: str, class_id: str, role_in_class: RoleInClass,
                       subject_id: Optional[str] = None,
                       status: RequestStatus = RequestStatus.pending,
                       processed_by: Optional[str] = None) -> ClassRequest:
        request = ClassRequest(
            user_id=user_id,
            class_id=class_id,
            subject_id=subject_id,
            role_in_class=role_in_class,
            status=status,
            requested_at=datetime.now(timezone.utc),
            processed_by=processed_by,
            processed_at=datetime.now(timezone.utc) if status != RequestStatus.pending else None,
        )
        return BaseRepository(self.db, ClassRequest).insert_guarded(request)

    def update_request_mirror(self, user_id: str, class_id: str, role_in_class: RoleInClass,
                              status: RequestStatus, processed_by: str,
                              subject_id: Optional[str] = None,
                              reason: Optional[str] = None) -> int:
        predicates = [
            ClassRequest.user_id == user_id,
            ClassRequest.class_id == class_id,
            ClassRequest.role_in_class == role_in_class,
            ClassRequest.status == RequestStatus.pending,
        ]
        if subject_id is None:
            predicates.append(ClassRequest.subject_id.is_(None))
        else:
            predicates.append(ClassRequest.subject_id == subject_id)

        return BaseRepository(self.db, ClassRequest).update_where(
            {
                "status": status,
                "processed_at": datetime.now(timezone.utc),
                "processed_by": processed_by,
                "reason": reason,
            },
            *predicates,
        )

    def remove_request_mirrors(self, class_id: str, subject_id: str, role_in_class: RoleInClass,
                               user_id: Optional[str] = None) -> int:
        """Drop mirror rows whose class entry was removed, so the user may request again."""
        query = self.db.query(ClassRequest).filter(
            ClassRequest.class_id == class_id,
            ClassRequest.subject_id == subject_id,
            ClassRequest.role_in_class == role_in_class,
        )
        if user_id is not None:
            query = query.filter(ClassRequest.user_id == user_id)
        return query.delete(synchronize_session=False)

    def class_requests(self, user_id: str, status: Optional[RequestStatus] = None) -> List[ClassRequest]:
        query = self.db.query(ClassRequest).filter(ClassRequest.user_id == user_id)
        if status is not None:
            query = query.filter(ClassRequest.status == status)
        return query.order_by(ClassRequest.requested_at).all()
