from typing import Optional
from pydantic import BaseModel, model_validator

from classroom_backend.api.exceptions import NotFoundException
from classroom_backend.interface.enums import UserRole
from classroom_backend.permissions.scopes import RoleScope, scope_for_role


class Principal(BaseModel):
    """The acting user as seen by the permission system.

    Built per request from the authenticated user; holds no decisions, so
    every check reads the relation graph as it is at that moment.
    """

    user_id: Optional[str] = None
    role: UserRole
    is_admin: bool = False

    @model_validator(mode='after')
    def set_is_admin_from_role(self):
        """Admin flag always follows the role"""
        self.is_admin = self.role == UserRole.admin
        return self

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(user_id=str(user.id), role=user.role)

    def get_user_id_or_throw(self) -> str:
        """Get user ID or raise exception"""
        if self.user_id is None:
            raise NotFoundException("User ID not found")
        return self.user_id

    def scope(self) -> RoleScope:
        """Role-specific view of the class/subject graph."""
        return scope_for_role(self.role, self.user_id)
