"""
Hexagon Tessellation

Pure geometry: covers a lng/lat bounding box with hexagonal cells and returns
them as GeoJSON polygons. Distances use a flat-earth approximation
(111 km per degree of latitude, scaled by cos(latitude) for longitude),
which is fine for the few tens of kilometres a warehouse grid spans.

Cell layout:

* flat-topped hexagons, vertices at 0, 60, ..., 300 degrees from the centre,
  circumradius equal to the side length;
* columns are 1.5 * side apart, odd columns are shifted north by
  sqrt(3) / 2 * side, so a cell touches six neighbours;
* only cells that fit entirely inside the box are kept and the resulting
  block is centred in the box;
* cells are ordered column by column from west to east, and within a column
  from south to north. Grid cell names depend on this order.
"""

import math

KM_PER_DEGREE = 111.0

SQRT3 = math.sqrt(3)

_EPSILON = 1e-9


def km_to_degrees(lat):
    """Degrees of (longitude, latitude) per kilometre at ``lat``."""
    lng_denominator = KM_PER_DEGREE * math.cos(math.radians(lat))
    if abs(lng_denominator) < _EPSILON:
        lng_denominator = 1
    return 1 / lng_denominator, 1 / KM_PER_DEGREE


def bounding_box(lat, lng, radius_km):
    """Return ``(west, south, east, north)`` around a point."""
    lng_per_km, lat_per_km = km_to_degrees(lat)
    lng_delta = radius_km * lng_per_km
    lat_delta = radius_km * lat_per_km
    return (lng - lng_delta, lat - lat_delta, lng + lng_delta, lat + lat_delta)


def _box_size_km(bbox):
    west, south, east, north = bbox
    if east <= west or north <= south:
        raise ValueError(f'Invalid bounding box: {bbox}')
    lng_per_km, lat_per_km = km_to_degrees((south + north) / 2)
    return (east - west) / lng_per_km, (north - south) / lat_per_km


def hexagon_area(side_km):
    return 1.5 * SQRT3 * side_km * side_km


def estimate_cell_count(bbox, side_km):
    """Upper bound on the number of cells ``hex_grid`` can produce."""
    if side_km <= 0:
        raise ValueError('Cell side must be positive')
    width, height = _box_size_km(bbox)
    return int(math.ceil(width * height / hexagon_area(side_km)))


def _hex_centres(width, height, side):
    hex_height = SQRT3 * side
    centres = []
    x = side
    column = 0
    while x + side <= width + _EPSILON:
        y = hex_height / 2 + (hex_height / 2 if column % 2 else 0)
        while y + hex_height / 2 <= height + _EPSILON:
            centres.append((x, y))
            y += hex_height
        x += 1.5 * side
        column += 1
    return centres


def hex_grid(bbox, side_km, precision=9):
    """Tessellate ``bbox`` into hexagons with sides of ``side_km`` kilometres.

    Returns a list of GeoJSON Polygon dicts, possibly empty when the box is
    smaller than one cell.
    """
    if side_km <= 0:
        raise ValueError('Cell side must be positive')

    west, south, _, _ = bbox
    width, height = _box_size_km(bbox)
    lng_per_km, lat_per_km = km_to_degrees((bbox[1] + bbox[3]) / 2)

    centres = _hex_centres(width, height, side_km)
    if not centres:
        return []

    hex_height = SQRT3 * side_km
    used_width = max(x for x, _ in centres) + side_km
    used_height = max(y for _, y in centres) + hex_height / 2
    shift_x = (width - used_width) / 2
    shift_y = (height - used_height) / 2

    offsets = [
        (side_km * math.cos(math.radians(angle)), side_km * math.sin(math.radians(angle)))
        for angle in range(0, 360, 60)
    ]

    polygons = []
    for cx, cy in centres:
        ring = []
        for dx, dy in offsets:
            lng = west + (cx + shift_x + dx) * lng_per_km
            lat = south + (cy + shift_y + dy) * lat_per_km
            ring.append([round(lng, precision), round(lat, precision)])
        ring.append(list(ring[0]))
        polygons.append({'type': 'Polygon', 'coordinates': [ring]})
    return polygons
