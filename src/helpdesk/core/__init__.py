"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from helpdesk.core.exceptions import (
    ApplicationException,
    DomainException,
    RepositoryException,
    ValidationException,
    ResourceNotFoundException,
    InvalidReferenceException,
    InvalidStateException,
    InvalidPriorityException,
    InvalidFormatException,
    EmptyCommentException,
    ForbiddenException,
    AlreadyExistsException,
    StorageUnavailableException,
    ConfigurationException,
    BlobStoreException,
)

__all__ = [
    "ApplicationException",
    "DomainException",
    "RepositoryException",
    "ValidationException",
    "ResourceNotFoundException",
    "InvalidReferenceException",
    "InvalidStateException",
    "InvalidPriorityException",
    "InvalidFormatException",
    "EmptyCommentException",
    "ForbiddenException",
    "AlreadyExistsException",
    "StorageUnavailableException",
    "ConfigurationException",
    "BlobStoreException",
]
