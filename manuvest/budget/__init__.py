"""Budget Plans Module.

Budget plan maintenance and item transfers between plans.
"""
from flask import Blueprint

budget_bp = Blueprint('budget', __name__)

from . import routes  # noqa: E402, F401
