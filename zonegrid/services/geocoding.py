"""
Reverse Geocoding

Looks up the governorate name for a coordinate through the Google Geocoding
API. Used only when the client did not send a region and an API key is
configured; every failure degrades to "no region".
"""

import logging

import requests
from flask import current_app

logger = logging.getLogger(__name__)

_AREA_LEVELS = ('administrative_area_level_1', 'administrative_area_level_2')


def _governorate_from_results(results):
    for result in results:
        level1 = level2 = None
        for component in result.get('address_components') or []:
            types = component.get('types') or []
            name = component.get('long_name') or component.get('short_name')
            if 'administrative_area_level_1' in types:
                level1 = name
            elif 'administrative_area_level_2' in types and not level2:
                level2 = name
        if level1 or level2:
            return level1 or level2
    return None


def reverse_geocode_governorate(lat, lng):
    """Return the raw governorate name for a point, or None."""
    api_key = current_app.config.get('GOOGLE_MAPS_API_KEY')
    if not api_key:
        return None

    params = {
        'latlng': f'{lat},{lng}',
        'key': api_key,
        'language': 'en',
        'result_type': '|'.join(_AREA_LEVELS),
    }

    try:
        resp = requests.get(current_app.config['GEOCODING_URL'], params=params,
                            timeout=current_app.config.get('GEOCODING_TIMEOUT', 6))
        if resp.status_code != 200:
            logger.warning("Geocoding error %s for (%s, %s)", resp.status_code, lat, lng)
            return None
        data = resp.json()
    except requests.exceptions.Timeout:
        logger.warning("Geocoding timed out for (%s, %s)", lat, lng)
        return None
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning("Geocoding failed for (%s, %s): %s", lat, lng, e)
        return None

    return _governorate_from_results(data.get('results') or [])
