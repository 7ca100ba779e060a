"""Procurement Module.

Purchase requests, their line items and the approval workflow.
"""
from flask import Blueprint

pr_bp = Blueprint('procurement', __name__)

from . import routes  # noqa: E402, F401
