"""Exceptions raised by the issue engine."""


class IssueBoardError(Exception):
    """Base class for issue engine errors."""

    pass


class NotFoundError(IssueBoardError):
    """No issue exists with the requested id."""

    def __init__(self, issue_id: int):
        super().__init__(f"Issue with ID {issue_id} not found")
        self.issue_id = issue_id


class ValidationError(IssueBoardError):
    """A required field was empty when an edit was committed."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class PersistenceError(IssueBoardError):
    """The persistence gateway failed or reported an unsuccessful result."""

    pass
