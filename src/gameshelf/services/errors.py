"""Service-layer error kinds.

Services raise these; API routes translate them into HTTP responses.
Nothing in the service layer knows about status codes.
"""


class ServiceError(Exception):
    """Base class for expected business-rule failures."""


class NotFoundError(ServiceError):
    """The resource does not exist."""


class ForbiddenError(ServiceError):
    """The resource exists but the caller does not own it."""


class ConflictError(ServiceError):
    """A uniqueness rule would be violated."""
