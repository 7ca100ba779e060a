"""ManuVest Core Authentication Module.

Handles login, logout and the current-user endpoint.
"""
from flask import Blueprint

auth_bp = Blueprint('auth', __name__)

from . import routes  # noqa: E402, F401
