"""
Warehouse Model
"""

from datetime import datetime

from sqlalchemy.orm import validates

from zonegrid.extensions import db


class Warehouse(db.Model):
    """Warehouse serving one region, owner of a set of zones"""
    __tablename__ = 'warehouses'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    code = db.Column(db.String(40), nullable=False, unique=True)
    country = db.Column(db.String(60), default='egypt')
    governorate = db.Column(db.String(60), index=True)
    address = db.Column(db.String(255))

    # Single point, both set or both empty
    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)

    # Optional GeoJSON polygon for the configured delivery boundary
    boundary_geometry = db.Column(db.JSON)

    default_shipping_price = db.Column(db.Float, nullable=False, default=0)
    is_default = db.Column(db.Boolean, nullable=False, default=False, index=True)
    active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    # Bumped by every grid generation
    grid_version = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow,
                           onupdate=datetime.utcnow)

    zones = db.relationship('Zone', back_populates='warehouse', lazy=True)

    @validates('code')
    def _upper_code(self, key, value):
        return value.strip().upper() if isinstance(value, str) else value

    @validates('governorate')
    def _lower_governorate(self, key, value):
        return value.strip().lower() if isinstance(value, str) else value

    @property
    def has_location(self):
        return self.latitude is not None and self.longitude is not None

    def to_dict(self):
        location = None
        if self.has_location:
            location = {'type': 'Point', 'coordinates': [self.longitude, self.latitude]}
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'country': self.country,
            'governorate': self.governorate,
            'address': self.address,
            'location': location,
            'defaultShippingPrice': self.default_shipping_price or 0,
            'isDefault': bool(self.is_default),
            'active': bool(self.active),
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Warehouse {self.code}>'
