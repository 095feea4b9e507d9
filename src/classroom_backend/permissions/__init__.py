"""
Permission system for the classroom backend.

Main components:
- principal: the acting user and its role
- scopes: per-role view of the class/subject graph (admin, teacher, student)
- handlers: base permission handler interface and registry
- handlers_impl: concrete handlers per resource type
- core: resolver entry points and handler registration
- query_builders: SQL filters for scoped listings
- scoping: derived class/subject pairs and messaging candidates
"""

from .principal import Principal

from .scopes import (
    RoleScope,
    AdminScope,
    TeacherScope,
    StudentScope,
    scope_for_role,
)

from .core import (
    is_authorized,
    require_authorized,
    can_manage_class_subject,
    require_manage_class_subject,
    initialize_permission_handlers,
)

from .handlers import (
    PermissionHandler,
    PermissionRegistry,
    permission_registry,
)

from .query_builders import ScopeQueryBuilder

from .scoping import (
    scoped_class_subject_pairs,
    scoped_class_ids,
    messageable_user_ids,
)

__all__ = [
    "Principal",

    # Role scopes
    "RoleScope",
    "AdminScope",
    "TeacherScope",
    "StudentScope",
    "scope_for_role",

    # Resolver
    "is_authorized",
    "require_authorized",
    "can_manage_class_subject",
    "require_manage_class_subject",
    "initialize_permission_handlers",

    # Handlers
    "PermissionHandler",
    "PermissionRegistry",
    "permission_registry",

    # Scoping
    "ScopeQueryBuilder",
    "scoped_class_subject_pairs",
    "scoped_class_ids",
    "messageable_user_ids",
]
