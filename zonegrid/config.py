"""
Configuration settings for the zone grid service
"""
import os


class Config:
    """Flask application configuration"""

    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production-12345'

    # Database configuration
    basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'zonegrid.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Seconds a storage call may wait on a locked database before failing
    STORAGE_TIMEOUT_SECONDS = float(os.environ.get('STORAGE_TIMEOUT_SECONDS') or 10)
    SQLALCHEMY_ENGINE_OPTIONS = {
        'connect_args': {'timeout': STORAGE_TIMEOUT_SECONDS},
    } if SQLALCHEMY_DATABASE_URI.startswith('sqlite') else {}

    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # Reverse geocoding (optional, resolution works without it)
    GOOGLE_MAPS_API_KEY = os.environ.get('GOOGLE_MAPS_API_KEY')
    GEOCODING_URL = 'https://maps.googleapis.com/maps/api/geocode/json'
    GEOCODING_TIMEOUT = 6

    # Zone grid settings
    DEFAULT_COUNTRY = 'egypt'
    GRID_MAX_CELLS = int(os.environ.get('GRID_MAX_CELLS') or 5000)
    GRID_LOCK_TIMEOUT = float(os.environ.get('GRID_LOCK_TIMEOUT') or 30)


class TestConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    GOOGLE_MAPS_API_KEY = None
    GRID_LOCK_TIMEOUT = 1
