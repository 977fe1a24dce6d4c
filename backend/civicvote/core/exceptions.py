"""
Domain errors raised by the services

All of them derive from ValueError so that routes can keep treating
"ValueError means the caller did something wrong" the same way everywhere.
"""


class ConventionError(ValueError):
    """Base class for rejected operations"""
    status_code = 400


class ValidationError(ConventionError):
    """Input is invalid for the current state (wrong phase, wrong riding, self-nomination...)"""


class ConflictError(ConventionError):
    """The operation clashes with existing state (already nominated, already voted...)"""


class NotFoundError(ConventionError):
    """A referenced convention, race, user or notification does not exist"""
    status_code = 404


class PermissionDeniedError(ConventionError):
    """Caller may not act on behalf of another user"""
    status_code = 403


class RoundConflictError(ConflictError):
    """The race's current round moved while the caller was acting on it"""
    status_code = 409
