"""
Zone Grid Services

Generation of a hexagonal zone grid around a warehouse and batch editing of
the generated cells.

Generation for one warehouse is serialized twice over: an in-process lock
per warehouse, and an optimistic check on ``warehouses.grid_version`` in the
same transaction as the delete and insert, which catches a concurrent
generation running in another process.
"""

import logging
import threading
import weakref

from flask import current_app
from shapely.geometry import shape
from sqlalchemy.exc import OperationalError

from zonegrid.errors import ConflictError, StorageError, ValidationError, ZoneGridError
from zonegrid.extensions import db
from zonegrid.models import Warehouse, Zone
from zonegrid.services.hexgrid import bounding_box, estimate_cell_count, hex_grid
from zonegrid.services.spatial import polygons_overlap
from zonegrid.services.storage import commit_session, is_number
from zonegrid.services.warehouses import get_warehouse_or_404
from zonegrid.services.zones import (
    assert_no_active_overlap,
    bulk_partial_update,
    count_zones_by_warehouse,
    count_zones_in_warehouse,
    delete_zones_by_warehouse,
    insert_zones,
    list_zones_by_warehouse,
)

logger = logging.getLogger(__name__)


class WarehouseLocks:
    """One lock per warehouse id, created on first use.

    Entries are weak: a lock is dropped once no caller holds a reference.
    """

    def __init__(self):
        self._locks = weakref.WeakValueDictionary()
        self._lock = threading.Lock()

    def get(self, warehouse_id):
        with self._lock:
            lock = self._locks.get(warehouse_id)
            if lock is None:
                lock = self._locks[warehouse_id] = threading.Lock()
            return lock

    def __len__(self):
        with self._lock:
            return len(self._locks)


generation_locks = WarehouseLocks()


def _positive_number(value, name):
    if not is_number(value) or value <= 0:
        raise ValidationError(f'{name} must be a positive number')
    return value


def generate_warehouse_grid(warehouse_id, radius_km=10, cell_side_km=1, overwrite=False):
    """Replace or create the hexagonal zone grid of a warehouse.

    All cells start inactive and are named ``<code>-cell-<n>``. Existing zones
    are only replaced when ``overwrite`` is true.
    """
    radius_km = _positive_number(radius_km, 'radiusKm')
    cell_side_km = _positive_number(cell_side_km, 'cellSideKm')
    if not isinstance(overwrite, bool):
        raise ValidationError('overwrite must be a boolean')

    warehouse = get_warehouse_or_404(warehouse_id)
    if not warehouse.has_location:
        raise ValidationError(
            'Warehouse location is not set. Please set location before generating zones grid.')

    bbox = bounding_box(warehouse.latitude, warehouse.longitude, radius_km)
    max_cells = current_app.config.get('GRID_MAX_CELLS', 5000)
    estimate = estimate_cell_count(bbox, cell_side_km)
    if estimate > max_cells:
        raise ValidationError(
            f'Grid would contain about {estimate} cells, the limit is {max_cells}. '
            'Use a smaller radius or a larger cell side.')

    lock = generation_locks.get(warehouse.id)
    if not lock.acquire(timeout=current_app.config.get('GRID_LOCK_TIMEOUT', 30)):
        raise ConflictError('Zone grid generation is already running for this warehouse')
    try:
        zones = _generate_locked(warehouse, bbox, cell_side_km, overwrite)
    finally:
        lock.release()

    logger.info("Generated %d grid cells for warehouse %s (radius %s km, side %s km)",
                len(zones), warehouse.code, radius_km, cell_side_km)
    return {
        'total': len(zones),
        'radiusKm': radius_km,
        'cellSideKm': cell_side_km,
        'data': zones,
    }


def _generate_locked(warehouse, bbox, cell_side_km, overwrite):
    version = warehouse.grid_version or 0

    existing = count_zones_by_warehouse(warehouse.id)
    if existing and not overwrite:
        raise ConflictError(
            'Zones already exist for this warehouse. Use overwrite=true to regenerate the grid.')

    polygons = hex_grid(bbox, cell_side_km)
    if not polygons:
        raise ValidationError('Failed to generate hex grid for the given parameters')

    prefix = warehouse.code or 'WH'
    zones = [
        Zone(
            name=f'{prefix}-cell-{index}',
            warehouse_id=warehouse.id,
            governorate=warehouse.governorate,
            country=warehouse.country or current_app.config.get('DEFAULT_COUNTRY', 'egypt'),
            geometry=polygon,
            active=False,
        )
        for index, polygon in enumerate(polygons, start=1)
    ]

    try:
        if existing:
            deleted = delete_zones_by_warehouse(warehouse.id)
            logger.info("Overwriting %d zones of warehouse %s", deleted, warehouse.code)
        insert_zones(zones)

        claimed = Warehouse.query.filter_by(id=warehouse.id, grid_version=version)\
            .update({'grid_version': version + 1}, synchronize_session=False)
        if claimed != 1:
            raise ConflictError('Zone grid was regenerated concurrently, please retry')
    except ZoneGridError:
        db.session.rollback()
        raise
    except OperationalError as exc:
        db.session.rollback()
        raise StorageError('Storage is temporarily unavailable, please retry') from exc

    commit_session()
    return zones


def get_warehouse_grid(warehouse_id):
    get_warehouse_or_404(warehouse_id)
    zones = list_zones_by_warehouse(warehouse_id)
    return {'results': len(zones), 'data': zones}


def _edit_zone_id(edit):
    zone_id = edit.get('zoneId', edit.get('id'))
    if isinstance(zone_id, bool):
        zone_id = None
    if isinstance(zone_id, str) and zone_id.strip().isdigit():
        zone_id = int(zone_id)
    if not isinstance(zone_id, int):
        raise ValidationError('Each zone edit needs an integer zoneId')
    return zone_id


def build_zone_delta(edit):
    """Column values to write for one grid edit; None means unset.

    Keys missing from ``edit`` are left alone. A present but empty (or zero)
    shippingFee clears the override so the warehouse default applies.
    """
    values = {}

    if isinstance(edit.get('active'), bool):
        values['active'] = edit['active']

    if isinstance(edit.get('name'), str):
        values['name'] = edit['name']

    if 'shippingFee' in edit:
        fee = edit['shippingFee']
        if fee is None or fee == '' or (is_number(fee) and fee == 0):
            values['shipping_fee'] = None
        elif is_number(fee) and fee > 0:
            values['shipping_fee'] = float(fee)
        else:
            raise ValidationError('shippingFee must be a non-negative number')

    if 'areaName' in edit:
        area_name = edit['areaName']
        if area_name is None or area_name == '':
            values['area_name'] = None
        elif isinstance(area_name, str):
            values['area_name'] = area_name.strip().lower() or None

    return values


def _assert_activations_do_not_overlap(deltas):
    """Reject a batch that would leave two active zones overlapping.

    Each zone the batch activates is checked against the stored active zones
    (other than those the batch deactivates) and against the other zones
    activated by the same batch.
    """
    activated = {zone_id for zone_id, values in deltas if values.get('active') is True}
    if not activated:
        return
    deactivated = {zone_id for zone_id, values in deltas if values.get('active') is False}
    deactivated -= activated

    checked = []
    for zone in Zone.query.filter(Zone.id.in_(activated)).order_by(Zone.id.asc()).all():
        polygon = shape(zone.geometry)
        assert_no_active_overlap(polygon, exclude_ids=activated | deactivated)
        for other, other_polygon in checked:
            if polygons_overlap(polygon, other_polygon):
                raise ConflictError(f'Zone {zone.id} ({zone.name}) overlaps zone {other.id} '
                                    f'({other.name}) activated in the same batch')
        checked.append((zone, polygon))


def update_warehouse_grid(warehouse_id, edits):
    """Apply a batch of partial edits to the grid cells of a warehouse.

    The batch is rejected as a whole when any edited zone belongs to another
    warehouse, or when it would leave two active zones overlapping. Edits
    without a recognised field are skipped. ``modifiedCount`` counts rows
    whose stored values actually changed.
    """
    if not isinstance(edits, list) or not edits:
        raise ValidationError('zones must be a non-empty array')

    get_warehouse_or_404(warehouse_id)

    updates = []
    for edit in edits:
        if not isinstance(edit, dict):
            raise ValidationError('Each zone edit must be an object')
        if edit.get('action', edit.get('_action')) != 'update':
            continue
        updates.append((_edit_zone_id(edit), edit))

    zone_ids = {zone_id for zone_id, _ in updates}
    if count_zones_in_warehouse(warehouse_id, zone_ids) != len(zone_ids):
        raise ConflictError('One or more zones do not belong to the specified warehouse')

    deltas = []
    for zone_id, edit in updates:
        values = build_zone_delta(edit)
        if values:
            deltas.append((zone_id, values))

    if not deltas:
        return {'modifiedCount': 0, 'data': list_zones_by_warehouse(warehouse_id)}

    _assert_activations_do_not_overlap(deltas)

    try:
        modified = bulk_partial_update(warehouse_id, deltas)
    except OperationalError as exc:
        db.session.rollback()
        raise StorageError('Storage is temporarily unavailable, please retry') from exc
    commit_session()

    logger.info("Updated %d grid cells of warehouse %s", modified, warehouse_id)
    return {'modifiedCount': modified, 'data': list_zones_by_warehouse(warehouse_id)}
