"""
Access resolver entry points.

Controllers build a Principal and a ResourceDescriptor and call
`is_authorized`; decisions are computed from the relation graph on every
call and never cached.
"""

import logging
from typing import Optional
from sqlalchemy.orm import Session

from classroom_backend.api.exceptions import ErrorKind, ForbiddenException, exception_for_kind
from classroom_backend.interface.enums import ResourceType
from classroom_backend.interface.resources import Decision, ResourceDescriptor
from classroom_backend.permissions.handlers import permission_registry
from classroom_backend.permissions.handlers_impl import (
    ClassBoundPermissionHandler,
    ContentPermissionHandler,
    GradebookPermissionHandler,
    MessagePermissionHandler,
)
from classroom_backend.permissions.principal import Principal

logger = logging.getLogger(__name__)


def initialize_permission_handlers():
    """Initialize and register all permission handlers"""

    permission_registry.register(ResourceType.content, ContentPermissionHandler(ResourceType.content))
    permission_registry.register(ResourceType.message, MessagePermissionHandler(ResourceType.message))
    permission_registry.register(ResourceType.gradebook, GradebookPermissionHandler(ResourceType.gradebook))

    # Resources that always live inside a class
    for resource_type in (
        ResourceType.attendance,
        ResourceType.assignment,
        ResourceType.submission,
        ResourceType.feedback,
        ResourceType.live_session,
        ResourceType.calendar_event,
    ):
        permission_registry.register(resource_type, ClassBoundPermissionHandler(resource_type))


def is_authorized(principal: Principal, resource: ResourceDescriptor, db: Session) -> Decision:
    """
    Main entry point for access decisions.
    Uses the registry pattern to delegate to the handler of the resource type.
    """
    decision = permission_registry.decide(principal, resource, db)
    if decision.allow:
        logger.debug("Allowed %s on %s (%s)", principal.user_id, resource.resource_type.value, decision.detail)
    return decision


def require_authorized(principal: Principal, resource: ResourceDescriptor, db: Session) -> Decision:
    """Like `is_authorized`, but raises the exception matching the deny reason."""
    decision = is_authorized(principal, resource, db)
    if not decision.allow:
        raise exception_for_kind(decision.reason or ErrorKind.FORBIDDEN, decision.detail)
    return decision


def can_manage_class_subject(principal: Principal, class_id: Optional[str],
                             subject_id: Optional[str], db: Session) -> bool:
    """Admin, or approved teacher of the class (subject), may create resources bound to it."""
    return principal.scope().can_manage_class_subject(class_id, subject_id, db)


def require_manage_class_subject(principal: Principal, class_id: Optional[str],
                                 subject_id: Optional[str], db: Session) -> None:
    if not can_manage_class_subject(principal, class_id, subject_id, db):
        logger.debug("Denied %s management of class=%s subject=%s", principal.user_id, class_id, subject_id)
        raise ForbiddenException(detail="Not authorized to manage this class subject")


initialize_permission_handlers()
