class TaskError(Exception):
    """Base error for the task API."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(TaskError):
    """Bad input shape or value."""


class NotFoundError(TaskError):
    """Referenced task id does not exist."""


class StoreError(TaskError):
    """Underlying database failure."""
