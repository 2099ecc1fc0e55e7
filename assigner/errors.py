"""Error taxonomy for the reviewer assignment service.

Domain errors carry a stable ``code`` used by the HTTP layer to build the
error body. Storage errors are kept apart from the domain taxonomy: they mean
the store itself failed and the outcome of a commit may be unknown.
"""


class AssignerError(Exception):
    """Base for all domain errors raised by the assignment engine."""

    code = "INTERNAL_ERROR"
    default_message = "assignment error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class TeamExists(AssignerError):
    code = "TEAM_EXISTS"
    default_message = "team already exists"


class TeamNotFound(AssignerError):
    code = "NOT_FOUND"
    default_message = "team not found"


class UserNotFound(AssignerError):
    code = "NOT_FOUND"
    default_message = "user not found"


class PullRequestNotFound(AssignerError):
    code = "NOT_FOUND"
    default_message = "pull request not found"


class PullRequestExists(AssignerError):
    code = "PR_EXISTS"
    default_message = "pull request already exists"


class PullRequestMerged(AssignerError):
    code = "PR_MERGED"
    default_message = "pull request already merged"


class ReviewerNotAssigned(AssignerError):
    code = "NOT_ASSIGNED"
    default_message = "reviewer not assigned to pull request"


class NoCandidate(AssignerError):
    code = "NO_CANDIDATE"
    default_message = "no replacement candidate"


class InvalidInput(AssignerError):
    code = "INVALID_REQUEST"
    default_message = "invalid input"


class OperationCancelled(AssignerError):
    """Raised when the caller's deadline passed or its cancel event was set."""

    code = "CANCELLED"
    default_message = "operation cancelled"


class StoreError(Exception):
    """Raised when the store fails (connectivity, timeout, corrupt data)."""

    pass


class UniqueViolation(StoreError):
    """Raised when an insert collides with a unique or primary key."""

    pass
