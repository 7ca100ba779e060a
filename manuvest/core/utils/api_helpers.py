"""Shared API utilities: decorators, error helpers, rate limiter, request validation.

Every JSON route in ManuVest answers with the same envelope:
    {'success': True, ...}                      on success
    {'success': False, 'error': '<message>'}    on failure
"""
import time
import logging
from collections import defaultdict
from functools import wraps

from flask import current_app, jsonify, request
from flask_login import current_user

from ..exceptions import DomainError
from ..models import UserRole

logger = logging.getLogger('manuvest.api')

STORE_EXTENSION = 'manuvest.store'
CONFIG_EXTENSION = 'manuvest.config'
LOGIN_LIMITER_EXTENSION = 'manuvest.login_limiter'


def get_store():
    """DomainStore attached to the running app by create_app()."""
    return current_app.extensions[STORE_EXTENSION]


def get_config():
    return current_app.extensions[CONFIG_EXTENSION]


# ============== Decorators ==============

def api_login_required(f):
    """Like @login_required but returns JSON 401 instead of redirect."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated


def role_required(*roles):
    """Decorator requiring authentication and one of the given roles."""
    allowed = frozenset(UserRole(r) for r in roles)

    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({'success': False, 'error': 'Authentication required'}), 401
            if UserRole(current_user.role) not in allowed:
                return jsonify({'success': False, 'error': 'Permission denied'}), 403
            return f(*args, **kwargs)
        return decorated
    return decorator


admin_required = role_required(UserRole.ADMIN)

# Plain users may read budgets but never change them
budget_editor_required = role_required(UserRole.ADMIN, UserRole.APPROVER, UserRole.FINANCE)


# ============== Request Validation ==============

def get_json_or_error():
    """Get JSON from request body with null check.

    Returns (data, error_response) tuple. Caller pattern:
        data, error = get_json_or_error()
        if error:
            return error
    """
    data = request.get_json(silent=True)
    if data is None:
        return None, (jsonify({
            'success': False,
            'error': 'Invalid or missing JSON body',
        }), 400)
    return data, None


# ============== Error Handling ==============

def error_response(message, status_code=400):
    return jsonify({'success': False, 'error': message}), status_code


def domain_error_response(e: DomainError):
    """Translate a domain exception into the JSON envelope with its status code."""
    return error_response(str(e), e.status_code)


def safe_error_response(e, status_code=500):
    """Return error response without leaking internals.

    - DomainError: its own message and status code
    - ValueError/KeyError: returns str(e) as 400 (business validation, safe to expose)
    - Everything else: logs full exception, returns generic message
    """
    if isinstance(e, DomainError):
        return domain_error_response(e)
    if isinstance(e, (ValueError, KeyError)):
        return error_response(str(e), 400)

    logger.exception('Unhandled error in API route')
    return error_response('An internal error occurred', status_code)


def handle_domain_errors(f):
    """Decorator turning exceptions raised by a route into the JSON envelope.

    DomainError keeps its own status code; anything else goes through
    safe_error_response.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except DomainError as e:
            logger.info(f'{request.method} {request.path} rejected: {e}')
            return domain_error_response(e)
        except Exception as e:
            return safe_error_response(e)
    return decorated


# ============== Rate Limiter ==============

class RateLimiter:
    """Simple in-memory rate limiter.

    Per-process state. Acceptable for an internal tool, not for public APIs.
    """

    def __init__(self):
        self._requests = defaultdict(list)

    def is_allowed(self, key, max_requests=10, window_seconds=60):
        """Check if request is allowed.

        Args:
            key: String identifier (username, IP address, etc.)
            max_requests: Max requests per window
            window_seconds: Window duration in seconds

        Returns:
            (is_allowed: bool, retry_after: int) tuple
        """
        now = time.time()
        window_start = now - window_seconds

        # Clean old entries
        self._requests[key] = [ts for ts in self._requests[key] if ts > window_start]

        if len(self._requests[key]) >= max_requests:
            oldest = min(self._requests[key])
            retry_after = int(oldest + window_seconds - now) + 1
            return False, max(1, retry_after)

        self._requests[key].append(now)
        return True, 0

    def reset(self, key=None):
        if key is None:
            self._requests.clear()
        else:
            self._requests.pop(key, None)
