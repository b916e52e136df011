"""
Zone Repository

Storage access for zones (point lookup, listing, bulk writes) and the
single-zone create/update/toggle/delete operations.
"""

import logging

from shapely.geometry import shape
from sqlalchemy import or_, update
from sqlalchemy.orm import joinedload

from zonegrid.errors import ConflictError, NotFoundError, ValidationError, ZoneGridError
from zonegrid.extensions import db
from zonegrid.models import Warehouse, Zone
from zonegrid.services.spatial import SpatialIndex, make_point, polygon_from_geojson, polygons_overlap
from zonegrid.services.storage import commit_session, is_number

logger = logging.getLogger(__name__)


def _bbox_filter(query, min_lng, min_lat, max_lng, max_lat):
    return query.filter(
        Zone.min_lng <= max_lng,
        Zone.max_lng >= min_lng,
        Zone.min_lat <= max_lat,
        Zone.max_lat >= min_lat,
    )


def find_zone_containing(lat, lng):
    """Return the zone covering the point, with its warehouse loaded.

    Overlapping zones are not expected. If several zones cover the point the
    one with the lowest id is returned and a warning is logged.
    """
    query = Zone.query.options(joinedload(Zone.warehouse))
    candidates = _bbox_filter(query, lng, lat, lng, lat).order_by(Zone.id.asc()).all()

    index = SpatialIndex()
    for zone in candidates:
        index.insert(shape(zone.geometry), zone)

    matches = index.query_containing(make_point(lat, lng))
    if not matches:
        return None
    if len(matches) > 1:
        logger.warning("Point (%s, %s) is covered by %d zones: %s; using zone %s",
                       lat, lng, len(matches), [z.id for z in matches], matches[0].id)
    return matches[0]


def list_zones_by_warehouse(warehouse_id):
    return Zone.query.filter_by(warehouse_id=warehouse_id)\
        .order_by(Zone.name.asc(), Zone.id.asc()).all()


def count_zones_by_warehouse(warehouse_id):
    return Zone.query.filter_by(warehouse_id=warehouse_id).count()


def count_zones_in_warehouse(warehouse_id, zone_ids):
    """How many of ``zone_ids`` belong to the warehouse."""
    if not zone_ids:
        return 0
    return Zone.query.filter(Zone.id.in_(zone_ids), Zone.warehouse_id == warehouse_id).count()


def insert_zones(zones):
    """Stage a batch of new zones in the session. The caller commits."""
    if not zones:
        raise ValidationError('Cannot insert an empty batch of zones')
    db.session.add_all(zones)
    db.session.flush()
    return zones


def delete_zones_by_warehouse(warehouse_id):
    """Stage deletion of every zone of a warehouse. The caller commits."""
    return Zone.query.filter_by(warehouse_id=warehouse_id).delete(synchronize_session='fetch')


def bulk_partial_update(warehouse_id, deltas):
    """Apply ``(zone_id, values)`` pairs as one UPDATE per zone.

    Each statement is scoped to the warehouse so a zone of another warehouse
    is never touched, and only matches when at least one value differs from
    the stored one. Returns the number of rows changed. The caller commits.
    """
    modified = 0
    for zone_id, values in deltas:
        changed = or_(*[getattr(Zone, column).is_distinct_from(value)
                        for column, value in values.items()])
        stmt = update(Zone)\
            .where(Zone.id == zone_id, Zone.warehouse_id == warehouse_id, changed)\
            .values(**values)
        result = db.session.execute(stmt)
        modified += result.rowcount or 0
    return modified


def get_zones(warehouse=None, country=None, governorate=None, active=None):
    """List zones matching the optional filters, ordered by name."""
    query = Zone.query.options(joinedload(Zone.warehouse))

    if warehouse is not None:
        query = query.filter(Zone.warehouse_id == warehouse)
    if country:
        query = query.filter(Zone.country.ilike(f'%{country}%'))
    if governorate:
        query = query.filter(Zone.governorate.ilike(f'%{governorate}%'))
    if active is not None:
        query = query.filter(Zone.active == active)

    return query.order_by(Zone.name.asc(), Zone.id.asc()).all()


def get_zone(zone_id):
    zone = db.session.get(Zone, zone_id)
    if zone is None:
        raise NotFoundError(f'No zone found for this id: {zone_id}')
    return zone


def _require_warehouse(warehouse_id):
    warehouse = db.session.get(Warehouse, warehouse_id) if warehouse_id is not None else None
    if warehouse is None:
        raise ValidationError(f'No warehouse found for this id: {warehouse_id}')
    return warehouse


def _parse_shipping_fee(value):
    if value is None:
        return None
    if not is_number(value) or value < 0:
        raise ValidationError('shippingFee must be a non-negative number')
    return float(value)


def assert_no_active_overlap(polygon, exclude_ids=()):
    """Raise ConflictError when ``polygon`` overlaps a stored active zone."""
    min_lng, min_lat, max_lng, max_lat = polygon.bounds
    query = _bbox_filter(Zone.query.filter(Zone.active.is_(True)), min_lng, min_lat, max_lng, max_lat)
    if exclude_ids:
        query = query.filter(Zone.id.notin_(list(exclude_ids)))

    for other in query.order_by(Zone.id.asc()).all():
        if polygons_overlap(polygon, shape(other.geometry)):
            raise ConflictError(f'Zone overlaps active zone {other.id} ({other.name})')


def create_zone(payload):
    """Create a zone linked to an existing warehouse.

    The governorate is copied from the warehouse. Active zones may not
    overlap other active zones.
    """
    name = payload.get('name')
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('name is required')

    warehouse = _require_warehouse(payload.get('warehouse'))
    geometry = payload.get('geometry')
    polygon = polygon_from_geojson(geometry)

    active = payload.get('active', True)
    if not isinstance(active, bool):
        raise ValidationError('active must be a boolean')
    if active:
        assert_no_active_overlap(polygon)

    area_name = payload.get('areaName')
    if area_name is not None and not isinstance(area_name, str):
        raise ValidationError('areaName must be a string')

    zone = Zone(
        name=name.strip(),
        area_name=area_name or None,
        country=payload.get('country') or warehouse.country or 'egypt',
        governorate=warehouse.governorate,
        geometry=geometry,
        warehouse_id=warehouse.id,
        shipping_fee=_parse_shipping_fee(payload.get('shippingFee')),
        active=active,
    )
    db.session.add(zone)
    commit_session()
    logger.info("Created zone %s for warehouse %s", zone.id, warehouse.code)
    return zone


def update_zone(zone_id, payload):
    """Update the fields present in ``payload``."""
    zone = get_zone(zone_id)
    try:
        with db.session.no_autoflush:
            _apply_zone_update(zone, payload)
    except ZoneGridError:
        db.session.rollback()
        raise
    commit_session()
    return zone


def _apply_zone_update(zone, payload):
    polygon = None

    if 'name' in payload:
        if not isinstance(payload['name'], str):
            raise ValidationError('name must be a string')
        zone.name = payload['name']
    if 'areaName' in payload:
        area_name = payload['areaName']
        if area_name is not None and not isinstance(area_name, str):
            raise ValidationError('areaName must be a string')
        zone.area_name = area_name or None
    if 'country' in payload:
        zone.country = payload['country']
    if 'shippingFee' in payload:
        zone.shipping_fee = _parse_shipping_fee(payload['shippingFee'])

    if 'warehouse' in payload:
        warehouse = _require_warehouse(payload['warehouse'])
        zone.warehouse = warehouse
        zone.governorate = warehouse.governorate

    if 'geometry' in payload:
        polygon = polygon_from_geojson(payload['geometry'])
        zone.geometry = payload['geometry']

    if 'active' in payload:
        if not isinstance(payload['active'], bool):
            raise ValidationError('active must be a boolean')
        zone.active = payload['active']

    if zone.active:
        if polygon is None:
            polygon = shape(zone.geometry)
        assert_no_active_overlap(polygon, exclude_ids=(zone.id,))


def toggle_zone_active(zone_id):
    zone = get_zone(zone_id)
    if not zone.active:
        assert_no_active_overlap(shape(zone.geometry), exclude_ids=(zone.id,))
    zone.active = not zone.active
    commit_session()
    logger.info("Zone %s is now %s", zone.id, 'active' if zone.active else 'inactive')
    return zone


def delete_zone(zone_id):
    # TODO: refuse deletion once orders and addresses reference zones
    zone = get_zone(zone_id)
    db.session.delete(zone)
    commit_session()
    logger.info("Deleted zone %s", zone_id)
