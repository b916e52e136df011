"""
Zone Model
"""

from datetime import datetime

from sqlalchemy.orm import validates

from zonegrid.extensions import db


class Zone(db.Model):
    """Polygon-bounded delivery cell owned by exactly one warehouse"""
    __tablename__ = 'zones'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120))
    area_name = db.Column(db.String(120))
    country = db.Column(db.String(60), default='egypt')
    governorate = db.Column(db.String(60), index=True)

    # GeoJSON Polygon, rings of [lng, lat]
    geometry = db.Column(db.JSON, nullable=False)

    # Bounding box of the exterior ring, for the storage-side prefilter
    min_lng = db.Column(db.Float, index=True)
    min_lat = db.Column(db.Float, index=True)
    max_lng = db.Column(db.Float)
    max_lat = db.Column(db.Float)

    warehouse_id = db.Column(db.Integer, db.ForeignKey('warehouses.id'),
                             nullable=False, index=True)
    shipping_fee = db.Column(db.Float)
    active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow,
                           onupdate=datetime.utcnow)

    warehouse = db.relationship('Warehouse', back_populates='zones')

    __table_args__ = (
        db.Index('ix_zones_warehouse_active', 'warehouse_id', 'active'),
    )

    @validates('area_name')
    def _lower_area_name(self, key, value):
        return value.strip().lower() if isinstance(value, str) else value

    @validates('geometry')
    def _store_bbox(self, key, value):
        ring = value['coordinates'][0]
        lngs = [point[0] for point in ring]
        lats = [point[1] for point in ring]
        self.min_lng, self.max_lng = min(lngs), max(lngs)
        self.min_lat, self.max_lat = min(lats), max(lats)
        return value

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'areaName': self.area_name,
            'country': self.country,
            'governorate': self.governorate,
            'geometry': self.geometry,
            'warehouse': self.warehouse_id,
            'shippingFee': self.shipping_fee,
            'active': bool(self.active),
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Zone {self.name}>'
