# errors.py — Service error taxonomy with TASK-DOMAIN-NUMBER codes
#
# Services raise these; main.py turns them into HTTP responses. Each error keeps
# an internal ``reason`` that is logged but never sent to the caller.
from typing import Any, Dict, Optional

# ============================================================
# ERROR CODE CATALOGUE
# TASK-{DOMAIN}-{NUMBER}
# Domains: AUTH, VAL, DB, SYS
# ============================================================

ERROR_CATALOGUE = {
    "TASK-AUTH-001": {"message": "Unauthenticated", "http_status": 401},
    "TASK-AUTH-002": {"message": "This action is unauthorized.", "http_status": 403},
    "TASK-VAL-001": {"message": "The given data was invalid.", "http_status": 422},
    "TASK-DB-001": {"message": "Record not found", "http_status": 404},
    "TASK-DB-002": {"message": "Unique constraint violation", "http_status": 409},
    "TASK-SYS-001": {"message": "Internal server error", "http_status": 500},
}

# What every caller sees on a scope denial, whatever the internal cause
UNAUTHORIZED_MESSAGE = ERROR_CATALOGUE["TASK-AUTH-002"]["message"]


class ServiceError(Exception):
    """Base class for errors raised by the core services"""
    code = "TASK-SYS-001"

    def __init__(self, message: Optional[str] = None, *, reason: Optional[str] = None):
        self.message = message or ERROR_CATALOGUE[self.code]["message"]
        self.reason = reason
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return ERROR_CATALOGUE[self.code]["http_status"]

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class ValidationError(ServiceError):
    """Malformed or missing input, reported per field"""
    code = "TASK-VAL-001"

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = errors
        super().__init__(message or next(iter(errors.values()), None))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detail": self.message,
            "code": self.code,
            "errors": {field: [msg] for field, msg in self.errors.items()},
        }


class AuthenticationError(ServiceError):
    code = "TASK-AUTH-001"


class AuthorizationError(ServiceError):
    """Authenticated, but not allowed to touch this record"""
    code = "TASK-AUTH-002"

    def __init__(self, reason: Optional[str] = None):
        # The message is fixed so the response never reveals scope structure
        super().__init__(UNAUTHORIZED_MESSAGE, reason=reason)


class NotFoundError(ServiceError):
    """The target id does not exist.

    ``concealed`` marks lookups made inside a scope-sensitive service: the
    caller gets the same answer as an AuthorizationError so that ids from other
    tenants cannot be probed.
    """
    code = "TASK-DB-001"

    def __init__(self, resource: str, resource_id: Optional[str] = None, *, concealed: bool = False):
        self.resource = resource
        self.resource_id = resource_id
        self.concealed = concealed
        super().__init__(f"{resource.capitalize()} not found", reason=f"{resource} {resource_id} does not exist")

    @property
    def status_code(self) -> int:
        if self.concealed:
            return ERROR_CATALOGUE[AuthorizationError.code]["http_status"]
        return super().status_code

    def to_dict(self) -> Dict[str, Any]:
        if self.concealed:
            return {"detail": UNAUTHORIZED_MESSAGE, "code": AuthorizationError.code}
        return super().to_dict()


class ConflictError(ServiceError):
    """Unique constraint violation, e.g. an email already in use"""
    code = "TASK-DB-002"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code, "errors": {self.field: [self.message]}}
