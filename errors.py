"""
Error taxonomy for the invoicing API.

Domain operations raise these; each route turns them into a JSON response
with the matching status code.
"""


class ServiceError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ValidationError(ServiceError):
    """Required input missing or malformed."""

    status_code = 400
    message = "Missing required fields"


class NotFoundError(ServiceError):
    status_code = 404
    message = "Not found"


class ConflictError(ServiceError):
    """Uniqueness violation reported by the store."""

    status_code = 400
    message = "Duplicate record"


class InternalError(ServiceError):
    status_code = 500
    message = "Internal server error"
