# core/exceptions.py

class DomainError(Exception):
    """Base class for domain-level errors."""
    def __init__(self, message: str,*, code: str | None = None):
        super().__init__(message)
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when a caller passes an argument the engine cannot interpret."""


class NotFoundError(DomainError):
    """Raised when an entity is not found in the requested scope."""


class WorkspaceFetchError(DomainError):
    """Raised by an entity supply when one workspace cannot be loaded."""

    def __init__(self, message: str, *, workspace_id: str, code: str | None = None):
        super().__init__(message, code=code or "WORKSPACE_FETCH_FAILED")
        self.workspace_id = workspace_id
