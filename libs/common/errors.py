"""Domain exceptions raised by service-layer code.

Service functions raise these instead of ``HTTPException`` so that they stay
usable from background tasks. The gateway's exception handlers map them to
HTTP responses via ``status_code`` and ``code``.
"""

from typing import Optional


class ServiceError(Exception):
    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, detail: str, code: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        if code:
            self.code = code


class NotFoundError(ServiceError):
    status_code = 404
    code = "NOT_FOUND"


class PermissionDeniedError(ServiceError):
    status_code = 403
    code = "FORBIDDEN"


class ConflictError(ServiceError):
    status_code = 409
    code = "CONFLICT"


class InvalidStateError(ServiceError):
    status_code = 400
    code = "INVALID_STATE"


class CapacityError(ServiceError):
    status_code = 400
    code = "CAPACITY_REACHED"


class AuthenticationError(ServiceError):
    status_code = 401
    code = "UNAUTHORIZED"
