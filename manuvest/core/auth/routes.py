"""Auth module routes.

JSON login, logout, current-user and password change endpoints.
"""
from flask import current_app, jsonify, request
from flask_login import current_user, login_user, logout_user

from . import auth_bp
from .models import SessionUser
from .services import AuthService
from ..utils.api_helpers import (
    LOGIN_LIMITER_EXTENSION, api_login_required, error_response, get_config,
    get_json_or_error, get_store,
)
from ..utils.logging_config import get_logger

logger = get_logger('manuvest.core.auth.routes')


# ============== AUTHENTICATION ROUTES ==============

@auth_bp.route('/api/auth/login', methods=['POST'])
def api_login():
    """Log in with username and password."""
    config = get_config()
    limiter = current_app.extensions[LOGIN_LIMITER_EXTENSION]
    allowed, retry_after = limiter.is_allowed(
        f'login:{request.remote_addr}',
        max_requests=config.LOGIN_MAX_ATTEMPTS,
        window_seconds=config.LOGIN_WINDOW_SECONDS,
    )
    if not allowed:
        return error_response(f'Too many login attempts. Try again in {retry_after} seconds.', 429)

    data, error = get_json_or_error()
    if error:
        return error

    result = AuthService(get_store()).authenticate(
        (data.get('username') or '').strip(), data.get('password') or '')
    if not result.success:
        return error_response(result.error, 401)

    user = SessionUser(result.user_data)
    login_user(user, remember=bool(data.get('remember')))
    return jsonify({'success': True, 'user': user.to_dict()})


@auth_bp.route('/api/auth/logout', methods=['POST'])
def api_logout():
    """Log out the current session. Safe to call when already logged out."""
    if current_user.is_authenticated:
        logger.info(f'User {current_user.username} logged out')
    logout_user()
    return jsonify({'success': True})


@auth_bp.route('/api/auth/current-user')
def api_current_user():
    """Get current user info for UI."""
    if current_user.is_authenticated:
        return jsonify({'authenticated': True, 'user': current_user.to_dict()})
    return jsonify({'authenticated': False})


@auth_bp.route('/api/auth/change-password', methods=['POST'])
@api_login_required
def api_change_password():
    """Change current user's password."""
    data, error = get_json_or_error()
    if error:
        return error

    result = AuthService(get_store()).change_password(
        current_user.id, current_user.username,
        data.get('current_password', ''), data.get('new_password', ''))
    if not result.success:
        return error_response(result.error)
    return jsonify({'success': True, 'message': 'Password changed successfully'})
