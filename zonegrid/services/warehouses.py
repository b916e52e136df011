"""
Warehouse Directory

Read access to warehouses plus the derived lookups used by location
resolution and grid management.
"""

import logging

from zonegrid.errors import NotFoundError
from zonegrid.extensions import db
from zonegrid.models import Warehouse

logger = logging.getLogger(__name__)


def find_warehouse_by_id(warehouse_id):
    return db.session.get(Warehouse, warehouse_id)


def warehouse_exists(warehouse_id):
    return db.session.query(Warehouse.id).filter_by(id=warehouse_id).first() is not None


def get_warehouse_or_404(warehouse_id):
    warehouse = find_warehouse_by_id(warehouse_id)
    if warehouse is None:
        raise NotFoundError(f'No warehouse found for this id: {warehouse_id}')
    return warehouse


def find_active_by_governorate(code):
    """Earliest-created active warehouse for a governorate."""
    if not code:
        return None
    return Warehouse.query.filter_by(governorate=code, active=True)\
        .order_by(Warehouse.created_at.asc(), Warehouse.id.asc()).first()


def find_default_warehouse():
    """Active default warehouse, else the earliest-created active one."""
    warehouse = Warehouse.query.filter_by(is_default=True, active=True)\
        .order_by(Warehouse.created_at.asc(), Warehouse.id.asc()).first()
    if warehouse is None:
        warehouse = Warehouse.query.filter_by(active=True)\
            .order_by(Warehouse.created_at.asc(), Warehouse.id.asc()).first()
    return warehouse


def list_warehouses(active=None):
    query = Warehouse.query
    if active is not None:
        query = query.filter_by(active=active)
    return query.order_by(Warehouse.created_at.asc(), Warehouse.id.asc()).all()


def create_warehouse(name, code, governorate=None, latitude=None, longitude=None,
                     default_shipping_price=0, is_default=False, active=True, **extra):
    """Create a warehouse; a new default clears the flag on all others."""
    if is_default:
        Warehouse.query.filter_by(is_default=True).update({'is_default': False})

    warehouse = Warehouse(
        name=name,
        code=code,
        governorate=governorate,
        latitude=latitude,
        longitude=longitude,
        default_shipping_price=default_shipping_price or 0,
        is_default=bool(is_default),
        active=active,
        **extra,
    )
    try:
        db.session.add(warehouse)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Created warehouse %s (%s)", warehouse.code, warehouse.governorate)
    return warehouse
