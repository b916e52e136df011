"""
Models Package

Exports all models for easy importing.
"""

from zonegrid.models.warehouse import Warehouse
from zonegrid.models.zone import Zone

__all__ = ['Warehouse', 'Zone']
