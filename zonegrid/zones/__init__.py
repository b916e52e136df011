"""
Zones Blueprint

Zone management and per-warehouse zone grid endpoints.
"""

from flask import Blueprint

zones_bp = Blueprint('zones', __name__)

from zonegrid.zones import routes  # noqa: E402, F401
