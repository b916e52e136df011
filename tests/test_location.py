import math

import pytest

from zonegrid.errors import ConfigurationError, ValidationError
from zonegrid.extensions import db
from zonegrid.services.location import get_location_options, resolve_location


@pytest.fixture()
def cairo(make_warehouse):
    return make_warehouse('CAI', governorate='cairo', default_shipping_price=25)


def test_point_inside_active_zone_is_green(cairo, make_zone):
    zone = make_zone(cairo, 30.05, 31.24, name='Downtown', area_name='Downtown')

    result = resolve_location(30.05, 31.24, 'Cairo')

    assert result['warehouse']['id'] == cairo.id
    assert result['location']['zone'] == {
        'id': zone.id, 'color': 'green', 'name': 'Downtown', 'areaName': 'downtown'}
    delivery = result['delivery']
    assert delivery['coverageStatus'] == 'GREEN_ZONE'
    assert delivery['canDeliver'] is True
    assert delivery['reasonCode'] is None
    assert delivery['reasonMessage'] is None
    assert delivery['effectiveShippingPrice'] == 25
    assert delivery['shippingFee'] is None
    assert result['location']['region'] == {'raw': 'Cairo', 'normalized': 'cairo', 'isSupported': True}


def test_zone_fee_overrides_warehouse_default(cairo, make_zone):
    make_zone(cairo, 30.05, 31.24, shipping_fee=40)

    delivery = resolve_location(30.05, 31.24)['delivery']

    assert delivery['effectiveShippingPrice'] == 40
    assert delivery['shippingFee'] == 40
    assert delivery['defaultShippingPrice'] == 25


def test_point_inside_inactive_zone_is_grey(cairo, make_zone):
    make_zone(cairo, 30.05, 31.24, active=False)

    result = resolve_location(30.05, 31.24)

    assert result['location']['zone']['color'] == 'grey'
    assert result['delivery']['coverageStatus'] == 'GREY_ZONE'
    assert result['delivery']['canDeliver'] is False
    assert result['delivery']['reasonCode'] == 'NON_DELIVERABLE_GREY_ZONE'
    # No client region: the warehouse's own region is reported
    assert result['location']['region']['normalized'] == 'cairo'


def test_zone_without_warehouse_is_a_configuration_error(cairo, make_zone):
    zone = make_zone(cairo, 30.05, 31.24)
    zone.warehouse_id = 9999
    db.session.commit()
    db.session.expire_all()

    with pytest.raises(ConfigurationError):
        resolve_location(30.05, 31.24)


def test_supported_region_outside_zones_uses_region_warehouse(make_warehouse):
    make_warehouse('ASW', governorate='aswan', is_default=True, lat=24.09, lng=32.9)
    cairo = make_warehouse('CAI', governorate='cairo', default_shipping_price=30)

    result = resolve_location(30.05, 31.24, 'Cairo')

    assert result['warehouse']['id'] == cairo.id
    assert result['location']['zone'] == {'id': None, 'color': None, 'name': None, 'areaName': None}
    delivery = result['delivery']
    assert delivery['coverageStatus'] == 'OUTSIDE_ZONES_SUPPORTED_GOVERNORATE'
    assert delivery['canDeliver'] is False
    assert delivery['reasonCode'] == 'NON_DELIVERABLE_OUTSIDE_GRID'
    assert delivery['effectiveShippingPrice'] == 30


def test_earliest_active_region_warehouse_wins(make_warehouse):
    first = make_warehouse('CAI-1', governorate='cairo')
    make_warehouse('CAI-2', governorate='cairo')
    make_warehouse('CAI-0', governorate='cairo', active=False)

    assert resolve_location(30.05, 31.24, 'cairo')['warehouse']['id'] == first.id


def test_supported_region_without_warehouse_falls_back_to_default(make_warehouse):
    default = make_warehouse('ASW', governorate='aswan', is_default=True)

    result = resolve_location(30.05, 31.24, 'Giza')

    assert result['warehouse']['id'] == default.id
    assert result['delivery']['coverageStatus'] == 'OUTSIDE_ZONES_SUPPORTED_GOVERNORATE'


def test_unknown_region_falls_back_to_default_warehouse(make_warehouse):
    make_warehouse('CAI', governorate='cairo')
    default = make_warehouse('GIZ', governorate='giza', is_default=True)

    result = resolve_location(30.05, 31.24, 'Atlantis')

    assert result['warehouse']['id'] == default.id
    assert result['warehouse']['isDefault'] is True
    assert result['delivery']['coverageStatus'] == 'OUTSIDE_ZONES_UNSUPPORTED_GOVERNORATE'
    assert result['delivery']['reasonCode'] == 'NON_DELIVERABLE_UNSUPPORTED_GOVERNORATE'
    assert result['location']['region'] == {'raw': 'Atlantis', 'normalized': 'giza', 'isSupported': True}


def test_unsupported_region_without_default_uses_earliest_active(make_warehouse):
    make_warehouse('OLD', governorate='cairo', active=False)
    earliest = make_warehouse('ASW', governorate='aswan')
    make_warehouse('CAI', governorate='cairo')

    result = resolve_location(24.1, 32.9, 'Aswan')

    assert result['warehouse']['id'] == earliest.id
    assert result['location']['region'] == {'raw': 'Aswan', 'normalized': 'aswan', 'isSupported': False}


def test_no_active_warehouse_is_a_configuration_error(make_warehouse):
    make_warehouse('OLD', active=False)
    with pytest.raises(ConfigurationError):
        resolve_location(30.05, 31.24, 'Cairo')


@pytest.mark.parametrize('lat, lng', [
    (None, 31.2),
    ('abc', 31.2),
    (91, 31.2),
    (30.0, -180.5),
    (math.nan, 31.2),
    (math.inf, 31.2),
    (True, 31.2),
    ([30.0], 31.2),
])
def test_invalid_coordinates_are_rejected(app, lat, lng):
    with pytest.raises(ValidationError):
        resolve_location(lat, lng)


def test_numeric_strings_are_accepted(cairo, make_zone):
    make_zone(cairo, 30.05, 31.24)
    result = resolve_location('30.05', ' 31.24 ', source='manual')
    assert result['location']['coordinates'] == {'lat': 30.05, 'lng': 31.24}
    assert result['location']['source'] == 'manual'
    assert result['delivery']['coverageStatus'] == 'GREEN_ZONE'


def test_effective_price_is_never_negative_or_null(make_warehouse, make_zone):
    warehouse = make_warehouse('CAI', default_shipping_price=-5)
    make_zone(warehouse, 30.05, 31.24, shipping_fee=0)
    assert resolve_location(30.05, 31.24)['delivery']['effectiveShippingPrice'] == 0

    result = resolve_location(31.5, 31.0, 'Cairo')
    assert result['delivery']['effectiveShippingPrice'] == 0.0


def test_overlapping_zones_lowest_id_wins(cairo, make_zone):
    first = make_zone(cairo, 30.05, 31.24, name='first')
    make_zone(cairo, 30.051, 31.241, name='second')

    assert resolve_location(30.0505, 31.2405)['location']['zone']['id'] == first.id


def test_point_on_zone_edge_counts_as_inside(cairo, make_zone):
    make_zone(cairo, 30.0, 31.0, half=0.25)
    assert resolve_location(30.25, 31.0)['delivery']['coverageStatus'] == 'GREEN_ZONE'


def test_region_is_reverse_geocoded_when_missing(app, make_warehouse, monkeypatch):
    make_warehouse('ASW', governorate='aswan', is_default=True)
    giza = make_warehouse('GIZ', governorate='giza')
    app.config['GOOGLE_MAPS_API_KEY'] = 'test-key'

    class FakeResponse:
        status_code = 200

        def json(self):
            return {'results': [{'address_components': [
                {'long_name': 'Giza Governorate', 'types': ['administrative_area_level_1']},
            ]}]}

    monkeypatch.setattr('zonegrid.services.geocoding.requests.get', lambda *a, **kw: FakeResponse())

    result = resolve_location(30.0, 31.2)

    assert result['location']['region']['raw'] == 'Giza Governorate'
    assert result['location']['region']['normalized'] == 'giza'
    assert result['warehouse']['id'] == giza.id


def test_point_inside_zone_skips_reverse_geocoding(app, cairo, make_zone, monkeypatch):
    make_zone(cairo, 30.05, 31.24)
    app.config['GOOGLE_MAPS_API_KEY'] = 'test-key'
    calls = []

    def fake_get(*args, **kwargs):
        calls.append(args)
        raise AssertionError('reverse geocoding should not run')

    monkeypatch.setattr('zonegrid.services.geocoding.requests.get', fake_get)

    result = resolve_location(30.05, 31.24)

    assert result['delivery']['coverageStatus'] == 'GREEN_ZONE'
    assert result['location']['region'] == {'raw': None, 'normalized': 'cairo', 'isSupported': True}
    assert calls == []


def test_location_options_group_areas_by_governorate(make_warehouse, make_zone):
    cairo = make_warehouse('CAI', governorate='cairo')
    giza = make_warehouse('GIZ', governorate='giza')
    make_zone(cairo, 30.05, 31.24, area_name='Zamalek')
    make_zone(cairo, 30.10, 31.30, area_name='zamalek')
    make_zone(cairo, 30.15, 31.35, area_name='Maadi')
    make_zone(cairo, 30.20, 31.40, area_name='Hidden', active=False)
    make_zone(giza, 30.00, 31.10)

    options = get_location_options()['governorates']
    by_code = {g['code']: g for g in options}

    assert set(by_code) == {'cairo', 'giza', 'alexandria', 'qalyubia'}
    assert by_code['cairo']['label'] == 'Cairo'
    assert by_code['cairo']['hasAreas'] is True
    assert by_code['cairo']['areas'] == [
        {'name': 'maadi', 'warehouseId': cairo.id},
        {'name': 'zamalek', 'warehouseId': cairo.id},
    ]
    assert by_code['giza'] == {'code': 'giza', 'label': 'Giza', 'hasAreas': False, 'areas': []}
