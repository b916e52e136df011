"""
Flask Extensions

Shared extension instances, bound to the application in the factory.
"""

from flask_sqlalchemy import SQLAlchemy

# Database instance
db = SQLAlchemy()
