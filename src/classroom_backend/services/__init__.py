"""
Service layer for business logic.
"""

from .enrollment_workflow import EnrollmentWorkflow

__all__ = ["EnrollmentWorkflow"]
