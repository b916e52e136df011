"""
Zone Grid Service - Application Factory

This module provides the Flask application factory pattern for creating
and configuring the application instance.
"""

import logging
import os

from flask import Flask, jsonify
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from zonegrid.config import Config
from zonegrid.errors import StorageError, ZoneGridError
from zonegrid.extensions import db

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    """Create and configure the Flask application.

    Args:
        config_class: Configuration class to use (default: Config)

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.getLogger('zonegrid').setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions
    db.init_app(app)

    # Register blueprints
    from zonegrid.locations import locations_bp
    from zonegrid.zones import zones_bp

    app.register_blueprint(locations_bp, url_prefix='/locations')
    app.register_blueprint(zones_bp)

    from zonegrid.cli import warehouse_cli
    app.cli.add_command(warehouse_cli)

    _register_error_handlers(app)

    from zonegrid.services.regions import log_alias_collisions
    log_alias_collisions()

    # Create database tables
    with app.app_context():
        uri = app.config['SQLALCHEMY_DATABASE_URI']
        if uri.startswith('sqlite:///') and not uri.endswith(':memory:'):
            db_dir = os.path.dirname(uri[len('sqlite:///'):])
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)
        from zonegrid import models  # noqa: F401
        db.create_all()

    return app


def _register_error_handlers(app):
    """Map service errors and HTTP errors to JSON bodies."""

    @app.errorhandler(ZoneGridError)
    def handle_service_error(err):
        if err.status_code >= 500:
            logger.error("%s: %s", type(err).__name__, err.message)
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(OperationalError)
    def handle_storage_error(err):
        logger.warning("Storage failure: %s", err)
        db.session.rollback()
        error = StorageError('Storage is temporarily unavailable, please retry')
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        status = 'fail' if err.code and err.code < 500 else 'error'
        return jsonify({'status': status, 'message': err.description}), err.code
