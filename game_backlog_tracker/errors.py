"""
Error handling for the Game Backlog Tracker session layer.

This module provides centralized error definitions, error classification,
and actionable error messages for authentication and session handling.
"""

import logging
from collections import deque
from enum import Enum
from typing import Deque, List, Optional, Dict, Any
from dataclasses import dataclass


# Oldest issues are discarded once this many of a kind are recorded
MAX_RECORDED_ISSUES = 100


class ErrorSeverity(Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors that can occur around a user session."""
    AUTHENTICATION = "authentication"
    SESSION = "session"
    STORAGE = "storage"
    NETWORK = "network"
    CONFIGURATION = "configuration"


@dataclass
class SessionIssue:
    """Represents a session-related error with context and guidance."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    details: str
    suggested_actions: List[str]
    error_code: str
    context: Dict[str, Any] = None

    def __post_init__(self):
        if self.context is None:
            self.context = {}


class GameBacklogError(Exception):
    """Base exception for Game Backlog Tracker errors."""

    def __init__(self, issue: SessionIssue):
        self.issue = issue
        super().__init__(issue.message)


class AuthServiceError(GameBacklogError):
    """Raised when the authentication service rejects or fails a request."""

    @classmethod
    def from_exception(cls, error: Exception, operation: str) -> 'AuthServiceError':
        return cls(error_handler.handle_auth_service_error(error, {'operation': operation}))


class ConfigurationError(GameBacklogError):
    """Raised when session configuration values are invalid."""

    @classmethod
    def for_field(cls, field_name: str, reason: str) -> 'ConfigurationError':
        return cls(SessionIssue(
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.ERROR,
            message=f"Invalid session configuration: {field_name}",
            details=reason,
            suggested_actions=[
                "Check the option names passed to the session monitor",
                "Durations are expressed in minutes and must be positive"
            ],
            error_code="CONFIG_001",
            context={'field': field_name}
        ))


class ErrorHandler:
    """
    Centralized error handling and reporting system.

    Classifies session-layer failures and logs them with actionable guidance.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.errors: Deque[SessionIssue] = deque(maxlen=MAX_RECORDED_ISSUES)
        self.warnings: Deque[SessionIssue] = deque(maxlen=MAX_RECORDED_ISSUES)

    def add_error(self, error: SessionIssue) -> None:
        """Add an error to the collection."""
        if error.severity in [ErrorSeverity.ERROR, ErrorSeverity.CRITICAL]:
            self.errors.append(error)
        elif error.severity == ErrorSeverity.WARNING:
            self.warnings.append(error)

        log_level = {
            ErrorSeverity.INFO: logging.INFO,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.CRITICAL
        }[error.severity]

        self.logger.log(log_level, f"[{error.error_code}] {error.message}")
        if error.details:
            self.logger.log(log_level, f"Details: {error.details}")

    def has_errors(self) -> bool:
        """Check if any errors have been recorded."""
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        """Check if any warnings have been recorded."""
        return len(self.warnings) > 0

    def get_error_summary(self) -> Dict[str, Any]:
        """Get a summary of all errors and warnings."""
        return {
            'error_count': len(self.errors),
            'warning_count': len(self.warnings),
            'errors': [self._format_error_for_summary(e) for e in self.errors],
            'warnings': [self._format_error_for_summary(e) for e in self.warnings]
        }

    def _format_error_for_summary(self, error: SessionIssue) -> Dict[str, Any]:
        """Format error for summary display."""
        return {
            'code': error.error_code,
            'category': error.category.value,
            'severity': error.severity.value,
            'message': error.message,
            'suggested_actions': error.suggested_actions
        }

    def clear_errors(self) -> None:
        """Clear all recorded errors and warnings."""
        self.errors.clear()
        self.warnings.clear()

    def handle_auth_service_error(self, error: Exception,
                                  context: Optional[Dict[str, Any]] = None) -> SessionIssue:
        """Classify a failure talking to the authentication service."""
        error_str = str(error).lower()

        if 'connection' in error_str or 'timeout' in error_str or 'network' in error_str:
            return SessionIssue(
                category=ErrorCategory.NETWORK,
                severity=ErrorSeverity.ERROR,
                message="Could not reach the authentication service",
                details=f"Network error: {error}",
                suggested_actions=[
                    "Check your internet connection",
                    "Verify SUPABASE_URL points at your project",
                    "Try again in a few moments"
                ],
                error_code="AUTH_001",
                context=context
            )

        if '401' in error_str or '403' in error_str or 'invalid' in error_str or 'expired' in error_str:
            return SessionIssue(
                category=ErrorCategory.AUTHENTICATION,
                severity=ErrorSeverity.ERROR,
                message="Authentication was rejected",
                details=f"Auth service response: {error}",
                suggested_actions=[
                    "Sign in again",
                    "Check that your email and password are correct"
                ],
                error_code="AUTH_002",
                context=context
            )

        return SessionIssue(
            category=ErrorCategory.AUTHENTICATION,
            severity=ErrorSeverity.ERROR,
            message="Authentication service error",
            details=f"Unexpected auth service failure: {error}",
            suggested_actions=[
                "Try again",
                "Sign out and sign in again if the problem persists"
            ],
            error_code="AUTH_003",
            context=context
        )

    def handle_validation_failure(self, error: Exception,
                                  context: Optional[Dict[str, Any]] = None) -> SessionIssue:
        """Record a session validation failure; the session is treated as invalid."""
        issue = SessionIssue(
            category=ErrorCategory.SESSION,
            severity=ErrorSeverity.WARNING,
            message="Session validation failed, signing out",
            details=f"Validation error: {error}",
            suggested_actions=["Sign in again"],
            error_code="SESSION_001",
            context=context
        )
        self.add_error(issue)
        return issue

    def handle_sign_out_failure(self, error: Exception,
                                context: Optional[Dict[str, Any]] = None) -> SessionIssue:
        """Record a failed sign-out during teardown. Teardown continues regardless."""
        issue = SessionIssue(
            category=ErrorCategory.AUTHENTICATION,
            severity=ErrorSeverity.WARNING,
            message="Sign-out request failed during session cleanup",
            details=f"Sign-out error: {error}",
            suggested_actions=[
                "Local credentials are still cleared",
                "Sign in again to continue"
            ],
            error_code="SESSION_002",
            context=context
        )
        self.add_error(issue)
        return issue

    def handle_storage_error(self, error: Exception, store: str, key: str) -> SessionIssue:
        """Record a single storage key that could not be purged."""
        issue = SessionIssue(
            category=ErrorCategory.STORAGE,
            severity=ErrorSeverity.WARNING,
            message=f"Could not remove '{key}' from {store}",
            details=str(error),
            suggested_actions=["Clear client storage manually if sign-in misbehaves"],
            error_code="STORAGE_001",
            context={'store': store, 'key': key}
        )
        self.add_error(issue)
        return issue


# Global error handler instance
error_handler = ErrorHandler()
