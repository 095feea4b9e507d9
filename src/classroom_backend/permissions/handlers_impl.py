from sqlalchemy.orm import Session

from classroom_backend.interface.resources import Decision, ResourceDescriptor
from classroom_backend.permissions.handlers import PermissionHandler
from classroom_backend.permissions.principal import Principal


class ContentPermissionHandler(PermissionHandler):
    """Permission handler for uploaded learning content.

    Visibility comes from the access level: public and school content is
    open, class content needs membership of its class/subject.
    """

    def decide(self, principal: Principal, resource: ResourceDescriptor, db: Session) -> Decision:
        return (
            self.check_admin(principal)
            or self.check_owner(principal, resource)
            or self.check_access_level(resource)
            or self.check_class_membership(principal, resource, db)
            or self.deny(principal, resource)
        )


class ClassBoundPermissionHandler(PermissionHandler):
    """Permission handler for resources that always belong to a class.

    Used for attendance, assignments, submissions, feedback, live sessions
    and calendar events. Users named on the record (the students of an
    attendance sheet, the author of a submission) keep access to it.
    """

    CLASS_BOUND = True

    def decide(self, principal: Principal, resource: ResourceDescriptor, db: Session) -> Decision:
        return (
            self.check_admin(principal)
            or self.check_owner(principal, resource)
            or self.check_participant(principal, resource)
            or self.check_access_level(resource)
            or self.check_class_membership(principal, resource, db)
            or self.deny(principal, resource)
        )


class GradebookPermissionHandler(ClassBoundPermissionHandler):
    """Permission handler for gradebook entries.

    The grading teacher is the owner and the graded student a participant;
    everybody else falls through to class membership.
    """


class MessagePermissionHandler(PermissionHandler):
    """Permission handler for messages.

    Direct messages are visible to sender and recipients only. A message
    posted to a class is additionally visible to the class members.
    """

    def is_class_scoped(self, resource: ResourceDescriptor) -> bool:
        return resource.class_id is not None or resource.is_class_scoped

    def decide(self, principal: Principal, resource: ResourceDescriptor, db: Session) -> Decision:
        return (
            self.check_admin(principal)
            or self.check_owner(principal, resource)
            or self.check_participant(principal, resource)
            or self.check_access_level(resource)
            or self.check_class_membership(principal, resource, db)
            or self.deny(principal, resource)
        )
