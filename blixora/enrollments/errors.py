"""
Enrollment lifecycle errors
Every engine failure is one of these; the app maps them to JSON responses.
"""


class LifecycleError(Exception):
    status_code = 400
    code = "lifecycle_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(LifecycleError):
    status_code = 404
    code = "not_found"


class Forbidden(LifecycleError):
    status_code = 403
    code = "forbidden"


class AlreadyEnrolled(LifecycleError):
    status_code = 409
    code = "already_enrolled"


class InvalidTransition(LifecycleError):
    status_code = 400
    code = "invalid_transition"


class ConcurrentUpdate(LifecycleError):
    """Enrollment changed between read and write (version mismatch)"""
    status_code = 409
    code = "concurrent_update"
