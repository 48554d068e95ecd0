"""
Custom exceptions for the restpipe system.

Two families:
- ConfigurationError: raised while building routes, never during a request
- StageError: raised by pipeline actions, aborts the pipeline and is
  forwarded untouched to the error boundary
"""

from __future__ import annotations

from typing import Optional


class RestpipeError(Exception):
    """Base exception for all restpipe errors."""
    pass


class ConfigurationError(RestpipeError):
    """Raised when an action tag or a route configuration is invalid."""
    pass


class StageError(RestpipeError):
    """
    Base exception for failures signalled by pipeline actions.

    status_code is a hint for the error boundary only. The pipeline itself
    never looks at it.
    """

    status_code: int = 500

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return cls.__name__

    @property
    def name(self) -> str:
        return type(self).__name__


class AuthenticationError(StageError):
    """Raised when a credential is missing or invalid."""

    status_code = 401

    @classmethod
    def default_message(cls) -> str:
        return "Authentication required"


class AuthorizationError(StageError):
    """Raised when a valid identity lacks the privilege for the route."""

    status_code = 403

    @classmethod
    def default_message(cls) -> str:
        return "Access denied"


class InactiveAccountError(AuthorizationError):
    """Raised when an authenticated account has been deactivated."""

    @classmethod
    def default_message(cls) -> str:
        return "Account is not active"


class PersistenceError(StageError):
    """Raised when the persistence layer fails to execute a query."""

    status_code = 500

    def __init__(self, message: Optional[str] = None, operation: Optional[str] = None):
        self.operation = operation
        super().__init__(message)

    @classmethod
    def default_message(cls) -> str:
        return "Persistence failure"


class NotFoundError(StageError):
    """Raised when a single-record operation matched no record."""

    status_code = 404

    def __init__(self, model: Optional[str] = None, conditions: Optional[dict] = None):
        self.model = model
        self.conditions = conditions or {}
        message = f"{model} not found" if model else None
        super().__init__(message)

    @classmethod
    def default_message(cls) -> str:
        return "Not found"
