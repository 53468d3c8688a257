"""Custom exceptions for content gateway operations."""


class ContentGateError(Exception):
    """Base exception for content gateway errors."""

    pass


class ValidationError(ContentGateError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFoundError(ContentGateError):
    """Raised when a document or release is not found."""

    def __init__(self, resource_type: str, resource_id: str):
        message = f"{resource_type} with ID '{resource_id}' not found"
        super().__init__(message)
        self.resource_type = resource_type
        self.resource_id = resource_id


class LimitExceededError(ContentGateError):
    """Raised when a resource exceeds a fixed size limit."""

    def __init__(self, resource_type: str, resource_id: str, limit: int, actual: int):
        message = (
            f"{resource_type} '{resource_id}' contains {actual} documents, "
            f"which exceeds the {limit} document limit"
        )
        super().__init__(message)
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.limit = limit
        self.actual = actual


class ConfigurationError(ContentGateError):
    """Raised when the service is missing configuration it needs."""

    pass


class RepositoryError(ContentGateError):
    """Raised when a call into the content repository fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.original_error = original_error

    def with_context(self, context: str) -> "RepositoryError":
        """Return an error of the same class with the operation context prepended."""
        return self.__class__(
            f"{context}: {self}",
            status_code=self.status_code,
            original_error=self,
        )


class ConflictError(RepositoryError):
    """Raised when the repository rejects a write because of a conflicting state."""

    pass
