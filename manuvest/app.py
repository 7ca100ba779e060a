"""ManuVest application factory.

    from manuvest.app import create_app
    app = create_app()            # settings from the environment
    app.run()
"""
from datetime import timedelta

from flask import Flask, jsonify, request
from flask_compress import Compress
from flask_login import LoginManager

from .config import AppConfig
from .core.models import User
from .core.seed import create_store
from .core.utils.api_helpers import (
    CONFIG_EXTENSION, LOGIN_LIMITER_EXTENSION, STORE_EXTENSION, RateLimiter,
)
from .core.utils.logging_config import get_logger, setup_logging

app_logger = get_logger('manuvest.app')

DEV_SECRET_KEY = 'dev-secret-key-for-local-only'

# Flask-Compress for gzip/brotli compression
compress = Compress()


def _resolve_secret_key(config: AppConfig) -> str:
    """Secret key is required in production; dev fallback only when DEBUG is on."""
    if config.SECRET_KEY:
        return config.SECRET_KEY
    if config.DEBUG:
        app_logger.warning('Using development secret key: set MANUVEST_SECRET_KEY for production')
        return DEV_SECRET_KEY
    raise RuntimeError('MANUVEST_SECRET_KEY environment variable is required')


def create_app(config: AppConfig = None, store=None) -> Flask:
    """Build the Flask app.

    Args:
        config: Settings; read from the environment when omitted
        store: DomainStore to serve; a new one (seeded per
               ``config.SEED_MOCK_DATA``) when omitted
    """
    config = config or AppConfig.from_env()
    config.validate()
    setup_logging(level=config.LOG_LEVEL, json_format=config.JSON_LOGS)

    app = Flask(__name__)
    app.secret_key = _resolve_secret_key(config)
    app.config['REMEMBER_COOKIE_DURATION'] = timedelta(days=30)
    app.config['REMEMBER_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'

    if store is None:
        store = create_store(seed=config.SEED_MOCK_DATA)
    app.extensions[STORE_EXTENSION] = store
    app.extensions[CONFIG_EXTENSION] = config
    app.extensions[LOGIN_LIMITER_EXTENSION] = RateLimiter()

    compress.init_app(app)
    _init_login(app, store)
    _register_blueprints(app)
    _register_error_handlers(app)

    app_logger.info(f'ManuVest startup complete: {len(app.url_map._rules)} routes registered')
    return app


def _init_login(app, store):
    from .core.auth.models import SessionUser

    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        """Reload the session user from the store on every request."""
        with store.lock:
            record = next((u for u in store.collection('users') if u.id == user_id), None)
        if record is None:
            return None
        return SessionUser(User.to_public_dict(record))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'error': 'Authentication required'}), 401


def _register_blueprints(app):
    from .core.auth import auth_bp
    from .core.masterdata import masterdata_bp
    from .budget import budget_bp
    from .procurement import pr_bp
    from .projects import projects_bp
    from .reports import reports_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(masterdata_bp)
    app.register_blueprint(budget_bp, url_prefix='/budget')
    app.register_blueprint(pr_bp, url_prefix='/pr')
    app.register_blueprint(projects_bp, url_prefix='/projects')
    app.register_blueprint(reports_bp)


# ============== Global Error Handlers ==============

def _register_error_handlers(app):

    @app.errorhandler(404)
    def handle_404(e):
        return jsonify({'success': False, 'error': 'Not found'}), 404

    @app.errorhandler(405)
    def handle_405(e):
        return jsonify({'success': False, 'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def handle_500(e):
        app_logger.exception(f'Unhandled 500 error on {request.path}')
        return jsonify({'success': False, 'error': 'An internal error occurred'}), 500
