"""ManuVest Master Data Module.

Lookup lists (departments, categories, IO numbers, cost centers, plants,
suppliers, items, currencies) and user administration.
"""
from flask import Blueprint

masterdata_bp = Blueprint('masterdata', __name__)

from . import routes  # noqa: E402, F401
