"""
Services Package

Exports all services for easy importing.
"""

from zonegrid.services.regions import normalize_governorate, is_supported_governorate
from zonegrid.services.warehouses import find_active_by_governorate, find_default_warehouse, create_warehouse
from zonegrid.services.zones import (
    find_zone_containing, get_zones, get_zone, create_zone, update_zone, toggle_zone_active, delete_zone
)
from zonegrid.services.location import resolve_location, get_location_options
from zonegrid.services.grid import generate_warehouse_grid, get_warehouse_grid, update_warehouse_grid

__all__ = [
    'normalize_governorate',
    'is_supported_governorate',
    'find_active_by_governorate',
    'find_default_warehouse',
    'create_warehouse',
    'find_zone_containing',
    'get_zones',
    'get_zone',
    'create_zone',
    'update_zone',
    'toggle_zone_active',
    'delete_zone',
    'resolve_location',
    'get_location_options',
    'generate_warehouse_grid',
    'get_warehouse_grid',
    'update_warehouse_grid',
]
