"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    code = "internal"

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def to_dict(self):
        """Serialize the error the way callable endpoints report it."""
        return {"success": False, "error": self.code, "message": self.message}


class ValidationError(AppError):
    """Raised when user input fails validation."""

    code = "invalid-argument"

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class UnauthenticatedError(AppError):
    """Raised when an operation requires a signed-in caller."""

    code = "unauthenticated"

    def __init__(self, message="Authentication required."):
        """Initialize the error."""
        super().__init__(message, 401)


class PermissionDeniedError(AppError):
    """Raised when the caller does not own the resource being changed."""

    code = "permission-denied"

    def __init__(self, message="You do not have permission to perform this action."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    code = "not-found"

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    code = "already-exists"

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class InvalidStateError(AppError):
    """Raised when a resource is not in a state that allows the operation."""

    code = "failed-precondition"

    def __init__(self, message="Operation not allowed in the current state."):
        """Initialize the error."""
        super().__init__(message, 409)


class InternalError(AppError):
    """Raised when the document store fails unexpectedly."""

    code = "internal"

    def __init__(self, message="Internal server error."):
        """Initialize the error."""
        super().__init__(message, 500)
