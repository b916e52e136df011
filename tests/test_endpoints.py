import pytest
from sqlalchemy.exc import OperationalError

from conftest import square
from zonegrid.models import Warehouse


@pytest.fixture()
def cairo(make_warehouse):
    return make_warehouse('CAI', governorate='cairo', default_shipping_price=25)


def test_resolve_inside_zone(client, cairo, make_zone):
    zone = make_zone(cairo, 30.05, 31.24, area_name='Downtown')

    r = client.post('/locations/resolve', json={'lat': 30.05, 'lng': 31.24, 'region': 'Cairo'})
    assert r.status_code == 200
    data = r.get_json()['data']
    assert data['location']['zone']['id'] == zone.id
    assert data['delivery']['coverageStatus'] == 'GREEN_ZONE'
    assert data['warehouse']['id'] == cairo.id


def test_resolve_accepts_governorate_raw(client, cairo):
    r = client.post('/locations/resolve', json={'lat': 30.05, 'lng': 31.24, 'governorateRaw': 'القاهرة'})
    data = r.get_json()['data']
    assert data['location']['region']['normalized'] == 'cairo'
    assert data['delivery']['coverageStatus'] == 'OUTSIDE_ZONES_SUPPORTED_GOVERNORATE'


@pytest.mark.parametrize('body', [
    {'lat': 'north', 'lng': 31.2},
    {'lng': 31.2},
    {'lat': 30.0, 'lng': 31.2, 'region': 7},
    ['not', 'an', 'object'],
])
def test_resolve_rejects_bad_input(client, cairo, body):
    r = client.post('/locations/resolve', json=body)
    assert r.status_code == 400
    assert r.get_json()['status'] == 'fail'


def test_resolve_without_warehouses_is_a_server_error(client):
    r = client.post('/locations/resolve', json={'lat': 30.0, 'lng': 31.2})
    assert r.status_code == 500
    assert r.get_json()['status'] == 'error'


def test_location_options(client, cairo, make_zone):
    make_zone(cairo, 30.05, 31.24, area_name='Zamalek')

    r = client.get('/locations/options')
    assert r.status_code == 200
    governorates = r.get_json()['data']['governorates']
    cairo_options = next(g for g in governorates if g['code'] == 'cairo')
    assert cairo_options['areas'] == [{'name': 'zamalek', 'warehouseId': cairo.id}]


def test_zone_crud(client, cairo):
    r = client.post('/zones', json={
        'name': 'Zamalek', 'warehouse': cairo.id, 'geometry': square(30.06, 31.22), 'shippingFee': 30})
    assert r.status_code == 201
    zone = r.get_json()['data']
    assert zone['governorate'] == 'cairo'
    assert zone['shippingFee'] == 30

    r = client.get('/zones', query_string={'warehouse': cairo.id, 'active': 'true'})
    assert r.get_json()['results'] == 1

    r = client.patch(f"/zones/{zone['id']}", json={'name': 'Zamalek Island'})
    assert r.get_json()['data']['name'] == 'Zamalek Island'

    r = client.patch(f"/zones/{zone['id']}/toggle-active")
    assert r.get_json()['data']['active'] is False

    r = client.delete(f"/zones/{zone['id']}")
    assert r.status_code == 204

    r = client.get(f"/zones/{zone['id']}")
    assert r.status_code == 404
    assert r.get_json() == {'status': 'fail', 'message': f"No zone found for this id: {zone['id']}"}


def test_overlapping_zone_is_a_conflict(client, cairo, make_zone):
    make_zone(cairo, 30.0, 31.0)
    r = client.post('/zones', json={'name': 'dup', 'warehouse': cairo.id, 'geometry': square(30.0, 31.0)})
    assert r.status_code == 409


def test_grid_generate_edit_and_read(client, cairo):
    r = client.post(f'/warehouses/{cairo.id}/zones-grid/generate', json={'radiusKm': 5, 'cellSideKm': 1})
    assert r.status_code == 201
    body = r.get_json()
    assert body['total'] == len(body['data']) > 0
    assert not any(z['active'] for z in body['data'])
    cell = body['data'][0]

    r = client.post(f'/warehouses/{cairo.id}/zones-grid/generate', json={'radiusKm': 5, 'cellSideKm': 1})
    assert r.status_code == 409

    r = client.put(f'/warehouses/{cairo.id}/zones-grid', json={'zones': [
        {'zoneId': cell['id'], 'action': 'update', 'active': True, 'shippingFee': 45}]})
    assert r.status_code == 200
    assert r.get_json()['modifiedCount'] == 1

    r = client.get(f'/warehouses/{cairo.id}/zones-grid')
    cells = {z['id']: z for z in r.get_json()['data']}
    assert cells[cell['id']]['active'] is True
    assert cells[cell['id']]['shippingFee'] == 45
    assert sum(z['active'] for z in cells.values()) == 1


def test_grid_generate_defaults_and_errors(client, cairo, make_warehouse):
    r = client.post(f'/warehouses/{cairo.id}/zones-grid/generate', json={'radiusKm': -1})
    assert r.status_code == 400

    r = client.post('/warehouses/999/zones-grid/generate')
    assert r.status_code == 404

    nowhere = make_warehouse('NOWHERE', lat=None, lng=None)
    r = client.post(f'/warehouses/{nowhere.id}/zones-grid/generate', json={})
    assert r.status_code == 400
    assert 'location' in r.get_json()['message']


def test_grid_edit_requires_zones_array(client, cairo):
    r = client.put(f'/warehouses/{cairo.id}/zones-grid', json={'zones': []})
    assert r.status_code == 400

    r = client.put(f'/warehouses/{cairo.id}/zones-grid', json={})
    assert r.status_code == 400


def test_storage_failures_are_retryable(client, cairo, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError('SELECT 1', {}, Exception('database is locked'))

    monkeypatch.setattr('zonegrid.zones.routes.get_warehouse_grid', broken)

    r = client.get(f'/warehouses/{cairo.id}/zones-grid')
    assert r.status_code == 503
    assert r.get_json()['retryable'] is True


def test_unknown_route_returns_json(client):
    r = client.get('/nowhere')
    assert r.status_code == 404
    assert r.get_json()['status'] == 'fail'


def test_cli_creates_and_lists_warehouses(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        'warehouse', 'create', '--name', 'Giza Hub', '--code', 'giz-1',
        '--governorate', 'Giza', '--lat', '30.0', '--lng', '31.2', '--default'])
    assert result.exit_code == 0, result.output
    warehouse = Warehouse.query.filter_by(code='GIZ-1').one()
    assert warehouse.governorate == 'giza'
    assert warehouse.is_default is True

    result = runner.invoke(args=['warehouse', 'list'])
    assert 'GIZ-1' in result.output
    assert '[default]' in result.output

    result = runner.invoke(args=['warehouse', 'create', '--name', 'x', '--code', 'x', '--lat', '30'])
    assert result.exit_code != 0
