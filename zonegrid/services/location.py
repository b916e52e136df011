"""
Location Resolution

Classifies a coordinate into one of four coverage statuses and picks the
warehouse that serves it:

GREEN_ZONE
    The point is inside an active zone. Deliverable.
GREY_ZONE
    The point is inside a zone that is not active yet.
OUTSIDE_ZONES_SUPPORTED_GOVERNORATE
    No zone covers the point, but the client's governorate is supported.
    The earliest active warehouse of that governorate is used, else the
    default warehouse.
OUTSIDE_ZONES_UNSUPPORTED_GOVERNORATE
    No zone covers the point and the governorate is unknown or unsupported.
    The default warehouse is used.

The effective shipping price is the zone override, else the warehouse
default, else 0.
"""

import logging
import math

from zonegrid.errors import ConfigurationError, ValidationError
from zonegrid.extensions import db
from zonegrid.models import Zone
from zonegrid.services.geocoding import reverse_geocode_governorate
from zonegrid.services.regions import (
    GOVERNORATE_LABELS,
    governorate_label,
    is_supported_governorate,
    normalize_governorate,
)
from zonegrid.services.storage import is_number
from zonegrid.services.warehouses import find_active_by_governorate, find_default_warehouse
from zonegrid.services.zones import find_zone_containing

logger = logging.getLogger(__name__)

GREEN_ZONE = 'GREEN_ZONE'
GREY_ZONE = 'GREY_ZONE'
OUTSIDE_ZONES_SUPPORTED_GOVERNORATE = 'OUTSIDE_ZONES_SUPPORTED_GOVERNORATE'
OUTSIDE_ZONES_UNSUPPORTED_GOVERNORATE = 'OUTSIDE_ZONES_UNSUPPORTED_GOVERNORATE'

NON_DELIVERABLE_GREY_ZONE = 'NON_DELIVERABLE_GREY_ZONE'
NON_DELIVERABLE_OUTSIDE_GRID = 'NON_DELIVERABLE_OUTSIDE_GRID'
NON_DELIVERABLE_UNSUPPORTED_GOVERNORATE = 'NON_DELIVERABLE_UNSUPPORTED_GOVERNORATE'

REASON_MESSAGES = {
    NON_DELIVERABLE_GREY_ZONE:
        "Delivery is not available in this area yet, but you can still browse products.",
    NON_DELIVERABLE_OUTSIDE_GRID:
        "We don't deliver to this exact area yet, but you can still browse products.",
    NON_DELIVERABLE_UNSUPPORTED_GOVERNORATE:
        "We don't deliver to your governorate yet, but you can still browse products.",
}

_EMPTY_ZONE = {'id': None, 'color': None, 'name': None, 'areaName': None}


def _coerce_coordinate(value, name, limit):
    if value is None or isinstance(value, bool):
        raise ValidationError(f'{name} is required and must be a number')
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise ValidationError(f'{name} must be a number')
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        raise ValidationError(f'{name} must be a number')

    if not math.isfinite(number) or abs(number) > limit:
        raise ValidationError(f'{name} must be between -{limit} and {limit}')
    return number


def _price(value):
    return float(value) if is_number(value) and value >= 0 else None


def effective_shipping_price(zone, warehouse):
    """Zone override, else warehouse default, else 0."""
    price = _price(zone.shipping_fee) if zone is not None else None
    if price is None and warehouse is not None:
        price = _price(warehouse.default_shipping_price)
    return price if price is not None else 0.0


def summarize_warehouse(warehouse):
    return {
        'id': warehouse.id,
        'name': warehouse.name,
        'region': warehouse.governorate,
        'isDefault': bool(warehouse.is_default),
        'defaultShippingPrice': _price(warehouse.default_shipping_price) or 0.0,
    }


def _verdict(warehouse, zone, zone_block, source, lat, lng, raw, normalized, supported,
             coverage_status, can_deliver, reason_code):
    return {
        'warehouse': summarize_warehouse(warehouse),
        'location': {
            'source': source,
            'coordinates': {'lat': lat, 'lng': lng},
            'zone': zone_block,
            'region': {
                'raw': raw,
                'normalized': normalized,
                'isSupported': supported,
            },
        },
        'delivery': {
            'canDeliver': can_deliver,
            'coverageStatus': coverage_status,
            'reasonCode': reason_code,
            'reasonMessage': REASON_MESSAGES.get(reason_code),
            'effectiveShippingPrice': effective_shipping_price(zone, warehouse),
            'shippingFee': _price(zone.shipping_fee) if zone is not None else None,
            'defaultShippingPrice': _price(warehouse.default_shipping_price) or 0.0,
        },
    }


def resolve_location(lat, lng, region_raw=None, source='gps'):
    """Resolve a coordinate to a warehouse and a delivery verdict."""
    lat = _coerce_coordinate(lat, 'lat', 90)
    lng = _coerce_coordinate(lng, 'lng', 180)
    source = source or 'gps'

    raw = region_raw if isinstance(region_raw, str) else None
    normalized_client = normalize_governorate(raw)

    zone = find_zone_containing(lat, lng)

    if zone is not None:
        warehouse = zone.warehouse
        if warehouse is None:
            logger.error("Zone %s (%s) has no linked warehouse", zone.id, zone.name)
            raise ConfigurationError(f'Zone {zone.id} has no linked warehouse')

        normalized = normalized_client or warehouse.governorate
        if zone.active:
            status, can_deliver, reason = GREEN_ZONE, True, None
        else:
            status, can_deliver, reason = GREY_ZONE, False, NON_DELIVERABLE_GREY_ZONE

        zone_block = {
            'id': zone.id,
            'color': 'green' if zone.active else 'grey',
            'name': zone.name,
            'areaName': zone.area_name,
        }
        return _verdict(warehouse, zone, zone_block, source, lat, lng, raw, normalized,
                        is_supported_governorate(normalized), status, can_deliver, reason)

    # Reverse geocoding runs only when no zone matched
    if region_raw is None:
        raw = reverse_geocode_governorate(lat, lng)
        normalized_client = normalize_governorate(raw)

    supported = is_supported_governorate(normalized_client)
    if supported:
        warehouse = find_active_by_governorate(normalized_client) or find_default_warehouse()
        status, reason = OUTSIDE_ZONES_SUPPORTED_GOVERNORATE, NON_DELIVERABLE_OUTSIDE_GRID
    else:
        warehouse = find_default_warehouse()
        status, reason = OUTSIDE_ZONES_UNSUPPORTED_GOVERNORATE, NON_DELIVERABLE_UNSUPPORTED_GOVERNORATE

    if warehouse is None:
        logger.error("No active warehouse configured, cannot resolve (%s, %s)", lat, lng)
        raise ConfigurationError('No active warehouse configured')

    normalized = normalized_client
    if not supported:
        normalized = normalized_client or warehouse.governorate
        supported = (is_supported_governorate(normalized_client)
                     or is_supported_governorate(warehouse.governorate))

    return _verdict(warehouse, None, dict(_EMPTY_ZONE), source, lat, lng, raw, normalized,
                    supported, status, False, reason)


def get_location_options():
    """Known area names of active zones, grouped by supported governorate."""
    rows = db.session.query(Zone.governorate, Zone.area_name, Zone.warehouse_id)\
        .filter(Zone.active.is_(True), Zone.area_name.isnot(None), Zone.area_name != '')\
        .order_by(Zone.area_name.asc(), Zone.warehouse_id.asc())\
        .all()

    areas_by_governorate = {}
    seen = set()
    for governorate, area_name, warehouse_id in rows:
        key = (governorate, area_name, warehouse_id)
        if key in seen:
            continue
        seen.add(key)
        areas_by_governorate.setdefault(governorate, []).append(
            {'name': area_name, 'warehouseId': warehouse_id})

    governorates = []
    for code in GOVERNORATE_LABELS:
        if not is_supported_governorate(code):
            continue
        areas = areas_by_governorate.get(code, [])
        governorates.append({
            'code': code,
            'label': governorate_label(code),
            'hasAreas': bool(areas),
            'areas': areas,
        })
    return {'governorates': governorates}
