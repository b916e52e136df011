"""
Spatial Index

Polygon helpers and the "which polygon contains this point" capability used
by zone lookup. The index is an STRtree over the inserted polygons with an
exact covered-by test, so a point on a polygon edge counts as contained.
"""

from shapely.errors import GEOSException
from shapely.geometry import Point, shape
from shapely.strtree import STRtree

from zonegrid.errors import ValidationError


class SpatialIndex:
    """Insert polygons with a reference, query the references covering a point.

    Results come back in insertion order. Callers that insert in a stable
    order (for example by primary key) get a stable winner when polygons
    overlap.
    """

    def __init__(self):
        self._polygons = []
        self._refs = []
        self._tree = None

    def __len__(self):
        return len(self._polygons)

    def insert(self, polygon, ref):
        self._polygons.append(polygon)
        self._refs.append(ref)
        self._tree = None

    def query_containing(self, point):
        if not self._polygons:
            return []
        if self._tree is None:
            self._tree = STRtree(self._polygons)
        hits = self._tree.query(point, predicate='covered_by')
        return [self._refs[i] for i in sorted(int(i) for i in hits)]


def make_point(lat, lng):
    return Point(lng, lat)


def polygon_from_geojson(geometry):
    """Build a shapely polygon from a GeoJSON Polygon dict.

    Raises ValidationError when the payload is not a simple polygon with
    non-zero area.
    """
    if not isinstance(geometry, dict):
        raise ValidationError('geometry must be an object')
    if geometry.get('type') != 'Polygon':
        raise ValidationError("geometry.type must be 'Polygon'")
    coordinates = geometry.get('coordinates')
    if not isinstance(coordinates, list) or not coordinates:
        raise ValidationError('geometry.coordinates must be a non-empty array')

    try:
        polygon = shape(geometry)
    except (ValueError, TypeError, KeyError, IndexError, GEOSException):
        raise ValidationError('Invalid zone geometry')

    if polygon.is_empty or not polygon.is_valid:
        raise ValidationError('Invalid zone geometry')
    if polygon.area <= 0:
        raise ValidationError('Zone geometry has zero area')
    return polygon


def polygons_overlap(a, b, tolerance=1e-9):
    """True when the interiors share area; touching edges do not count.

    ``tolerance`` is relative to the smaller polygon so floating point noise
    along a shared edge is ignored.
    """
    if not a.intersects(b):
        return False
    return a.intersection(b).area > tolerance * min(a.area, b.area)
