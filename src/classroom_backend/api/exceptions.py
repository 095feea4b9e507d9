from enum import Enum
from fastapi import HTTPException, status
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    INVALID_STATE = "invalid_state"
    VALIDATION = "validation"


class NotFoundException(HTTPException):
    kind = ErrorKind.NOT_FOUND

    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_404_NOT_FOUND
        self.detail = detail or "Not found"

class ForbiddenException(HTTPException):
    kind = ErrorKind.FORBIDDEN

    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_403_FORBIDDEN
        self.detail = detail or "Forbidden"

class BadRequestException(HTTPException):
    kind = ErrorKind.VALIDATION

    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_400_BAD_REQUEST
        self.detail = detail or "Bad request"

class ConflictException(BadRequestException):
    """Duplicate request or duplicate active enrollment."""
    kind = ErrorKind.CONFLICT

    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(detail or "Conflict", headers)

class InvalidStateException(BadRequestException):
    """Transition attempted from a state that does not allow it."""
    kind = ErrorKind.INVALID_STATE

    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(detail or "Invalid state", headers)

class ValidationException(BadRequestException):
    kind = ErrorKind.VALIDATION

    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(detail or "Validation error", headers)

def exception_for_kind(kind: ErrorKind, detail: Any = None) -> HTTPException:
    if kind == ErrorKind.NOT_FOUND:
        return NotFoundException(detail=detail)
    elif kind == ErrorKind.FORBIDDEN:
        return ForbiddenException(detail=detail)
    elif kind == ErrorKind.CONFLICT:
        return ConflictException(detail=detail)
    elif kind == ErrorKind.INVALID_STATE:
        return InvalidStateException(detail=detail)
    else:
        return ValidationException(detail=detail)
