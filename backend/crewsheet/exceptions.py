"""
Typed exceptions raised by the crewsheet services.

Every error carries a machine-readable ``code`` and an HTTP ``status_code``
so the API layer can translate it without parsing messages:

    CrewsheetError (base)
    |
    +-- ValidationError       VALIDATION_ERROR      400
    +-- AuthorizationError    NOT_AUTHORIZED        403
    +-- NotFoundError         NOT_FOUND             404
    +-- InvalidStateError     INVALID_STATE         409
    +-- DependencyFailure     DEPENDENCY_FAILURE    503  (retryable)
"""


class CrewsheetError(Exception):
    """Base exception for all crewsheet service errors."""

    code: str = "CREWSHEET_ERROR"
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(CrewsheetError):
    """Malformed input: missing signature, bad counts, empty rejection reason."""

    code: str = "VALIDATION_ERROR"
    status_code: int = 400


class AuthorizationError(CrewsheetError):
    """The actor lacks the role or relationship the current stage requires."""

    code: str = "NOT_AUTHORIZED"
    status_code: int = 403


class NotFoundError(CrewsheetError):
    code: str = "NOT_FOUND"
    status_code: int = 404

    def __init__(self, entity_type: str, entity_id):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} not found")


class InvalidStateError(CrewsheetError):
    """Operation attempted against a timesheet that is not in the expected state."""

    code: str = "INVALID_STATE"
    status_code: int = 409

    def __init__(self, message: str, current_status: str | None = None):
        self.current_status = current_status
        super().__init__(message)


class DependencyFailure(CrewsheetError):
    """PDF generation, object storage or the database failed mid-transition.

    Nothing from the failed attempt is committed, so the same call may be
    retried safely.
    """

    code: str = "DEPENDENCY_FAILURE"
    status_code: int = 503
    retryable: bool = True

    def __init__(self, message: str, dependency: str):
        self.dependency = dependency
        super().__init__(message)
