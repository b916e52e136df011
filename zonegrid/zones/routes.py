"""
Zone Routes

Single-zone management plus the warehouse zone grid endpoints.
"""

from flask import jsonify, request

from zonegrid.errors import ValidationError
from zonegrid.services import (
    create_zone,
    delete_zone,
    generate_warehouse_grid,
    get_warehouse_grid,
    get_zone,
    get_zones,
    toggle_zone_active,
    update_warehouse_grid,
    update_zone,
)
from zonegrid.zones import zones_bp


def _json_body():
    body = request.get_json(silent=True)
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise ValidationError('Request body must be a JSON object')
    return body


def _parse_active(value):
    if value is None:
        return None
    value = value.strip().lower()
    if value in ('true', '1'):
        return True
    if value in ('false', '0'):
        return False
    return None


@zones_bp.route('/zones', methods=['GET'])
def list_zones():
    """List zones, filtered by warehouse, country, governorate or active flag"""
    zones = get_zones(
        warehouse=request.args.get('warehouse', type=int),
        country=request.args.get('country'),
        governorate=request.args.get('governorate'),
        active=_parse_active(request.args.get('active')),
    )
    return jsonify({'results': len(zones), 'data': [z.to_dict() for z in zones]})


@zones_bp.route('/zones/<int:zone_id>', methods=['GET'])
def zone_detail(zone_id):
    return jsonify({'data': get_zone(zone_id).to_dict()})


@zones_bp.route('/zones', methods=['POST'])
def add_zone():
    zone = create_zone(_json_body())
    return jsonify({'data': zone.to_dict()}), 201


@zones_bp.route('/zones/<int:zone_id>', methods=['PATCH'])
def edit_zone(zone_id):
    zone = update_zone(zone_id, _json_body())
    return jsonify({'data': zone.to_dict()})


@zones_bp.route('/zones/<int:zone_id>/toggle-active', methods=['PATCH'])
def toggle_zone(zone_id):
    zone = toggle_zone_active(zone_id)
    return jsonify({'message': 'Zone active status changed successfully', 'data': zone.to_dict()})


@zones_bp.route('/zones/<int:zone_id>', methods=['DELETE'])
def remove_zone(zone_id):
    delete_zone(zone_id)
    return '', 204


@zones_bp.route('/warehouses/<int:warehouse_id>/zones-grid/generate', methods=['POST'])
def generate_grid(warehouse_id):
    """Generate the hexagonal zone grid around a warehouse"""
    body = _json_body()
    result = generate_warehouse_grid(
        warehouse_id,
        radius_km=body.get('radiusKm', 10),
        cell_side_km=body.get('cellSideKm', 1),
        overwrite=body.get('overwrite', False),
    )
    result['data'] = [z.to_dict() for z in result['data']]
    return jsonify(result), 201


@zones_bp.route('/warehouses/<int:warehouse_id>/zones-grid', methods=['GET'])
def warehouse_grid(warehouse_id):
    result = get_warehouse_grid(warehouse_id)
    result['data'] = [z.to_dict() for z in result['data']]
    return jsonify(result)


@zones_bp.route('/warehouses/<int:warehouse_id>/zones-grid', methods=['PUT'])
def edit_warehouse_grid(warehouse_id):
    """Apply a batch of partial edits to the warehouse's grid cells"""
    body = _json_body()
    result = update_warehouse_grid(warehouse_id, body.get('zones'))
    result['data'] = [z.to_dict() for z in result['data']]
    return jsonify(result)
