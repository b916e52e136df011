import pytest

from zonegrid import create_app
from zonegrid.config import TestConfig
from zonegrid.extensions import db
from zonegrid.models import Warehouse, Zone


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


def square(lat, lng, half=0.01):
    """GeoJSON square centred on (lat, lng)."""
    return {
        'type': 'Polygon',
        'coordinates': [[
            [lng - half, lat - half],
            [lng + half, lat - half],
            [lng + half, lat + half],
            [lng - half, lat + half],
            [lng - half, lat - half],
        ]],
    }


@pytest.fixture()
def make_warehouse(app):
    def _make(code, governorate='cairo', lat=30.0444, lng=31.2357, **kwargs):
        warehouse = Warehouse(
            name=kwargs.pop('name', f'Warehouse {code}'),
            code=code,
            governorate=governorate,
            latitude=lat,
            longitude=lng,
            **kwargs,
        )
        db.session.add(warehouse)
        db.session.commit()
        return warehouse
    return _make


@pytest.fixture()
def make_zone(app):
    def _make(warehouse, lat, lng, half=0.01, **kwargs):
        zone = Zone(
            name=kwargs.pop('name', f'{warehouse.code}-zone'),
            warehouse_id=warehouse.id,
            governorate=warehouse.governorate,
            geometry=square(lat, lng, half),
            **kwargs,
        )
        db.session.add(zone)
        db.session.commit()
        return zone
    return _make
