"""
Location Routes
"""

from flask import jsonify, request

from zonegrid.errors import ValidationError
from zonegrid.locations import locations_bp
from zonegrid.services import get_location_options, resolve_location


@locations_bp.route('/options', methods=['GET'])
def options():
    """Supported governorates and their known areas, for client pickers"""
    return jsonify({'data': get_location_options()})


@locations_bp.route('/resolve', methods=['POST'])
def resolve():
    """Resolve a coordinate to a warehouse and a delivery verdict"""
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError('Request body must be a JSON object')

    region = body.get('region', body.get('governorateRaw'))
    if region is not None and not isinstance(region, str):
        raise ValidationError('region must be a string')

    result = resolve_location(
        body.get('lat'),
        body.get('lng'),
        region_raw=region,
        source=body.get('source') or 'gps',
    )
    return jsonify({'data': result})
