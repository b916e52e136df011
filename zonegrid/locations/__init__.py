"""
Locations Blueprint

Public endpoints that resolve a client location to a warehouse.
"""

from flask import Blueprint

locations_bp = Blueprint('locations', __name__)

from zonegrid.locations import routes  # noqa: E402, F401
