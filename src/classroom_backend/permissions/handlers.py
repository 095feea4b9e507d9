import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional
from sqlalchemy.orm import Session

from classroom_backend.interface.enums import AccessLevel, ResourceType
from classroom_backend.interface.resources import Decision, ResourceDescriptor
from classroom_backend.permissions.principal import Principal

logger = logging.getLogger(__name__)


class PermissionHandler(ABC):
    """Base class for resource-type specific permission handlers.

    The building blocks below are the steps of the access decision; concrete
    handlers chain them in `decide` and stop at the first one that answers.
    Each step returns a Decision to grant, or None to fall through.
    """

    # Resource types that always belong to a class (attendance, gradebook, ...)
    CLASS_BOUND: bool = False

    def __init__(self, resource_type: ResourceType):
        self.resource_type = resource_type
        self.resource_name = resource_type.value

    @abstractmethod
    def decide(self, principal: Principal, resource: ResourceDescriptor, db: Session) -> Decision:
        """Return the access decision for principal on resource."""
        pass

    def check_admin(self, principal: Principal) -> Optional[Decision]:
        """Check if principal has admin privileges"""
        if principal.scope().unrestricted:
            return Decision.allowed("admin")
        return None

    def check_owner(self, principal: Principal, resource: ResourceDescriptor) -> Optional[Decision]:
        if principal.user_id is not None and resource.owner_id == principal.user_id:
            return Decision.allowed("owner")
        return None

    def check_participant(self, principal: Principal, resource: ResourceDescriptor) -> Optional[Decision]:
        if principal.user_id is not None and principal.user_id in resource.participant_ids:
            return Decision.allowed("participant")
        return None

    def check_access_level(self, resource: ResourceDescriptor) -> Optional[Decision]:
        if resource.access_level == AccessLevel.public:
            return Decision.allowed("public")
        if resource.access_level == AccessLevel.school:
            return Decision.allowed("school")
        return None

    def is_class_scoped(self, resource: ResourceDescriptor) -> bool:
        return resource.is_class_scoped or self.CLASS_BOUND

    def check_class_membership(self, principal: Principal, resource: ResourceDescriptor, db: Session) -> Optional[Decision]:
        """Approved teacher of / actively enrolled student in the resource's class (and subject)."""
        if not self.is_class_scoped(resource):
            return None
        if principal.scope().can_access_class(resource.class_id, resource.subject_id, db):
            return Decision.allowed("class member")
        return None

    def deny(self, principal: Principal, resource: ResourceDescriptor) -> Decision:
        logger.debug(
            "Denied %s (%s) access to %s class=%s subject=%s",
            principal.user_id, principal.role.value, self.resource_name,
            resource.class_id, resource.subject_id,
        )
        return Decision.forbidden(f"Not authorized to access this {self.resource_name.replace('_', ' ')}")


class PermissionRegistry:
    """Registry for managing resource permission handlers"""

    _instance = None
    _handlers: Dict[ResourceType, PermissionHandler] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def register(self, resource_type: ResourceType, handler: PermissionHandler):
        """Register a permission handler for a resource type"""
        self._handlers[resource_type] = handler

    def get_handler(self, resource_type: ResourceType) -> Optional[PermissionHandler]:
        """Get the permission handler for a resource type"""
        return self._handlers.get(resource_type)

    def decide(self, principal: Principal, resource: ResourceDescriptor, db: Session) -> Decision:
        handler = self.get_handler(resource.resource_type)
        if not handler:
            # Fallback to admin-only if no handler registered
            if principal.is_admin:
                return Decision.allowed("admin")
            return Decision.forbidden(f"No permission handler for {resource.resource_type.value}")

        return handler.decide(principal, resource, db)


# Global registry instance
permission_registry = PermissionRegistry()
