from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information, such as physical filesystem paths.
    """


class NotFoundError(UserError):
    """Raised when a requested file, folder, user or share is not found."""

    def __init__(self, message: str = "Item not found") -> None:
        super().__init__(message)


class AlreadyExistsError(UserError):
    """Raised when the target of a create, copy or move already exists."""

    def __init__(self, message: str = "Item already exists") -> None:
        super().__init__(message)


class NotEmptyError(UserError):
    """Raised when a non-recursive delete targets a folder with children."""

    def __init__(self, message: str = "Folder is not empty") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when credentials or the authentication token are missing or wrong."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class SessionExpiredError(AuthenticationError):
    """Raised when a token is unknown or its session has expired."""

    def __init__(self, message: str = "Invalid or expired session") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a user tries to access a resource they do not have permission for."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)


class SecurityError(AccessDeniedError):
    """Raised when a virtual path would escape the user's sandbox root."""

    def __init__(self, message: str = "Path escapes the user's root folder") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""


class NotAFileError(ValidationError):
    """Raised when a file operation targets a folder."""

    def __init__(self, message: str = "Path is a folder, not a file") -> None:
        super().__init__(message)


class NotAFolderError(ValidationError):
    """Raised when a folder operation targets a file."""

    def __init__(self, message: str = "Path is a file, not a folder") -> None:
        super().__init__(message)


class InternalError(Exception):
    """Unexpected filesystem failure. Never shown to the user verbatim."""
