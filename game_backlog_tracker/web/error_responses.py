"""Centralized error response formatting for web API endpoints.

This module provides consistent error response formatting across all API endpoints,
including error codes, messages, and action_required fields.
"""

from typing import Dict, Any, Optional, Tuple
from flask import jsonify
import logging

logger = logging.getLogger(__name__)


class ErrorCode:
    """Standard error codes for API responses."""

    # Authentication errors
    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_EXPIRED = "AUTH_EXPIRED"
    AUTH_SERVICE_ERROR = "AUTH_SERVICE_ERROR"
    MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"

    # Data validation errors
    MISSING_FIELDS = "MISSING_FIELDS"

    # General errors
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class ActionRequired:
    """Standard action_required values for error responses."""

    AUTHENTICATION = "authentication"
    RE_AUTHENTICATION = "re_authentication"
    RETRY = "retry"
    CONTACT_SUPPORT = "contact_support"
    CONFIGURE_CREDENTIALS = "configure_credentials"
    FIX_REQUEST = "fix_request"


def format_error_response(
    error_message: str,
    error_code: str,
    action_required: Optional[str] = None,
    additional_data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Format a consistent error response for API endpoints.

    Args:
        error_message: Human-readable error message
        error_code: Machine-readable error code (use ErrorCode constants)
        action_required: Specific user action needed (use ActionRequired constants)
        additional_data: Additional data to include in response

    Returns:
        Dictionary formatted for JSON response

    Example:
        >>> format_error_response(
        ...     "Authentication required",
        ...     ErrorCode.AUTH_REQUIRED,
        ...     action_required=ActionRequired.AUTHENTICATION
        ... )
        {
            'success': False,
            'error': 'Authentication required',
            'error_code': 'AUTH_REQUIRED',
            'action_required': 'authentication'
        }
    """
    response = {
        'success': False,
        'error': error_message,
        'error_code': error_code
    }

    if action_required:
        response['action_required'] = action_required

    if additional_data:
        response.update(additional_data)

    return response


def authentication_required_response(message: Optional[str] = None) -> Tuple[Any, int]:
    """
    Create a standardized authentication required error response.

    Args:
        message: Custom error message (uses default if None)

    Returns:
        Tuple of (jsonify response, HTTP status code)
    """
    if not message:
        message = "Authentication required. Please sign in with your email and password."

    response = format_error_response(
        error_message=message,
        error_code=ErrorCode.AUTH_REQUIRED,
        action_required=ActionRequired.AUTHENTICATION
    )

    return jsonify(response), 401


def authentication_expired_response() -> Tuple[Any, int]:
    """
    Create a standardized session expired error response.

    Returns:
        Tuple of (jsonify response, HTTP status code)
    """
    response = format_error_response(
        error_message="Your session has expired. Please sign in again.",
        error_code=ErrorCode.AUTH_EXPIRED,
        action_required=ActionRequired.RE_AUTHENTICATION
    )

    return jsonify(response), 401


def auth_service_error_response(details: str) -> Tuple[Any, int]:
    """
    Create a response for an auth service failure that is not a rejection.

    Args:
        details: Description of the failure

    Returns:
        Tuple of (jsonify response, HTTP status code)
    """
    response = format_error_response(
        error_message=f"The authentication service could not complete the request: {details}",
        error_code=ErrorCode.AUTH_SERVICE_ERROR,
        action_required=ActionRequired.RETRY
    )

    return jsonify(response), 502


def missing_credentials_response() -> Tuple[Any, int]:
    """
    Create a standardized missing project configuration error response.

    Returns:
        Tuple of (jsonify response, HTTP status code)
    """
    message = (
        "Authentication is not configured. "
        "Follow these steps:\n"
        "1. Open your Supabase project settings\n"
        "2. Copy the project URL and anon key\n"
        "3. Set SUPABASE_URL and SUPABASE_ANON_KEY\n"
        "4. Restart the server"
    )

    response = format_error_response(
        error_message=message,
        error_code=ErrorCode.MISSING_CREDENTIALS,
        action_required=ActionRequired.CONFIGURE_CREDENTIALS
    )

    return jsonify(response), 500


def missing_fields_response(*field_names: str) -> Tuple[Any, int]:
    """
    Create a response for a request body missing required fields.

    Args:
        field_names: Names of the missing fields

    Returns:
        Tuple of (jsonify response, HTTP status code)
    """
    response = format_error_response(
        error_message=f"Missing required fields: {', '.join(field_names)}",
        error_code=ErrorCode.MISSING_FIELDS,
        action_required=ActionRequired.FIX_REQUEST,
        additional_data={'missing_fields': list(field_names)}
    )

    return jsonify(response), 400


def unsupported_operation_response(operation: str) -> Tuple[Any, int]:
    """
    Create a response for an operation the configured auth backend lacks.

    Returns:
        Tuple of (jsonify response, HTTP status code)
    """
    response = format_error_response(
        error_message=f"The configured authentication service does not support {operation}",
        error_code=ErrorCode.UNSUPPORTED_OPERATION
    )

    return jsonify(response), 501


def unexpected_error_response(
    error_details: Optional[str] = None,
    include_details: bool = False
) -> Tuple[Any, int]:
    """
    Create a standardized unexpected error response.

    Args:
        error_details: Details about the error (for logging)
        include_details: Whether to include error details in response (dev mode)

    Returns:
        Tuple of (jsonify response, HTTP status code)
    """
    if include_details and error_details:
        message = f"An unexpected error occurred: {error_details}"
    else:
        message = (
            "An unexpected error occurred. "
            "Please try again or contact support if the problem persists."
        )

    response = format_error_response(
        error_message=message,
        error_code=ErrorCode.UNEXPECTED_ERROR,
        action_required=ActionRequired.CONTACT_SUPPORT
    )

    return jsonify(response), 500
