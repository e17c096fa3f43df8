"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

Every exception carries a ``kind`` naming its entry in the error taxonomy
(NotFound, InvalidReference, InvalidState, InvalidPriority, InvalidFormat,
EmptyComment, Forbidden, AlreadyExists, StorageUnavailable) so callers can act on it
without inspecting the message.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    kind: str = "ApplicationError"

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""

    kind = "StorageError"


class ValidationException(ApplicationException):
    """Exception for validation errors."""

    kind = "InvalidFormat"


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    kind = "NotFound"

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[object] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id is not None:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class InvalidReferenceException(ValidationException):
    """A foreign key (category, subcategory, SLA tier, priority) does not resolve."""

    kind = "InvalidReference"


class InvalidStateException(DomainException):
    """Unrecognised status value or a transition the lifecycle does not allow."""

    kind = "InvalidState"

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        illegal_transition: bool = False
    ):
        self.illegal_transition = illegal_transition
        super().__init__(message, details)


class InvalidPriorityException(ValidationException):
    """Unrecognised priority value."""

    kind = "InvalidPriority"


class InvalidFormatException(ValidationException):
    """Malformed input value (e.g. a time-worked string)."""

    kind = "InvalidFormat"


class EmptyCommentException(ValidationException):
    """Comment text is blank."""

    kind = "EmptyComment"

    def __init__(self, details: Optional[dict] = None):
        super().__init__("Comment text must not be blank", details)


class ForbiddenException(ApplicationException):
    """Caller lacks the role the operation requires."""

    kind = "Forbidden"

    def __init__(self, operation: str, details: Optional[dict] = None, role: str = "admin"):
        self.operation = operation
        super().__init__(f"Operation '{operation}' requires the {role} role", details)


class AlreadyExistsException(ApplicationException):
    """The record being added is already present."""

    kind = "AlreadyExists"


class StorageUnavailableException(RepositoryException):
    """Transient backing-store failure; the caller may retry."""

    kind = "StorageUnavailable"
    retryable = True


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""

    kind = "ConfigurationError"


class BlobStoreException(ApplicationException):
    """Attachment bytes could not be written to the blob store."""

    kind = "BlobStoreError"
