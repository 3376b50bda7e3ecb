"""API endpoints for session status and lifecycle."""

import logging
import uuid

from flask import Blueprint, jsonify, request, current_app

from ..errors import AuthServiceError, ErrorCategory
from ..session.status import describe_session_status
from .error_responses import (
    authentication_required_response,
    authentication_expired_response,
    auth_service_error_response,
    missing_credentials_response,
    missing_fields_response,
    unsupported_operation_response,
    unexpected_error_response,
)

# Create logger
logger = logging.getLogger(__name__)

# Create API blueprint
bp = Blueprint('api', __name__, url_prefix='/api')


@bp.errorhandler(Exception)
def handle_unexpected_error(e):
    """Handle unexpected errors with proper logging."""
    logger.error(f"Unexpected error: {e}", exc_info=True)

    return unexpected_error_response(
        error_details=str(e),
        include_details=current_app.debug
    )


def _get_controller():
    return current_app.config.get('AUTH_CONTROLLER')


def _status_payload(controller):
    monitor = controller.monitor
    info = describe_session_status(controller.session, monitor.clock)
    payload = info.to_dict()
    payload.update({
        'authenticated': controller.is_authenticated,
        'monitor_state': monitor.state.value,
        'warning_shown': monitor.warning_shown,
        'show_session_status': monitor.config.show_session_status,
    })
    return payload


@bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'ok',
        'message': 'Game Backlog Tracker API is running'
    })


@bp.route('/session/status', methods=['GET'])
def session_status():
    """
    Get the current session status.

    Returns JSON with:
        - status: str - "Not Authenticated", "Expiring Soon", "Active (Warning)"
          or "Active & Secure"
        - variant: str - badge style
        - is_valid: bool - whether the token has time left
        - time_remaining: str - human-readable time left (None if signed out)
        - monitor_state: str - session monitor state
    """
    controller = _get_controller()
    if controller is None:
        return missing_credentials_response()

    return jsonify(_status_payload(controller))


@bp.route('/session/validate', methods=['POST'])
def validate_session():
    """Validate the session now instead of waiting for the next check."""
    controller = _get_controller()
    if controller is None:
        return missing_credentials_response()

    valid = controller.validate_session()
    if not valid:
        return authentication_expired_response()

    payload = _status_payload(controller)
    payload['valid'] = True
    return jsonify(payload)


@bp.route('/session/activity', methods=['POST'])
def record_activity():
    """
    Report a user input event.

    Expects JSON: {"event": "click"}. Only events configured as activity
    reset the inactivity timer.
    """
    activity_source = current_app.config.get('ACTIVITY_SOURCE')
    if activity_source is None:
        return missing_credentials_response()

    data = request.get_json(silent=True) or {}
    event = data.get('event')
    if not event:
        return missing_fields_response('event')

    handled = activity_source.dispatch(event)
    return jsonify({
        'success': True,
        'event': event,
        'counted_as_activity': handled > 0
    })


@bp.route('/session/sign-in', methods=['POST'])
def sign_in():
    """Sign in with email and password. Expects JSON: {"email": ..., "password": ...}."""
    controller = _get_controller()
    if controller is None:
        return missing_credentials_response()

    sign_in_with_password = getattr(controller.auth_service, 'sign_in_with_password', None)
    if sign_in_with_password is None:
        return unsupported_operation_response('password sign-in')

    data = request.get_json(silent=True) or {}
    missing = [name for name in ('email', 'password') if not data.get(name)]
    if missing:
        return missing_fields_response(*missing)

    try:
        sign_in_with_password(data['email'], data['password'])
    except AuthServiceError as e:
        logger.warning(f"Sign-in failed: {e}")
        if e.issue.category == ErrorCategory.NETWORK:
            return auth_service_error_response(e.issue.details)
        return authentication_required_response("Invalid email or password.")

    payload = _status_payload(controller)
    payload['success'] = True
    return jsonify(payload)


@bp.route('/session/sign-out', methods=['POST'])
def sign_out():
    """Sign out of the current session."""
    controller = _get_controller()
    if controller is None:
        return missing_credentials_response()

    controller.sign_out()
    return jsonify({'success': True, 'authenticated': False})


@bp.route('/notifications/stream', methods=['GET'])
def stream_notifications():
    """
    Server-Sent Events endpoint for session notifications.

    Returns:
        SSE stream of notifications
    """
    streamer = current_app.config.get('NOTIFICATION_STREAMER')
    if streamer is None:
        return missing_credentials_response()

    client_id = str(uuid.uuid4())

    return current_app.response_class(
        streamer.generate_stream(client_id),
        mimetype='text/event-stream',
        headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no'
        }
    )
