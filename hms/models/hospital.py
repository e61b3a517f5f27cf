"""
Hospital model - each hospital is a separate tenant.
Every tenant-owned row carries hospital_id and is filtered by it.
"""
from datetime import datetime
from hms.extensions import db


class Hospital(db.Model):
    """Hospital (tenant) model"""
    __tablename__ = 'hospitals'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    address = db.Column(db.String(255))
    phone = db.Column(db.String(20))
    email = db.Column(db.String(120))

    # Status
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    users = db.relationship('User', backref='hospital', lazy='dynamic')
    branches = db.relationship('Branch', backref='hospital', lazy='dynamic')
    patients = db.relationship('Patient', backref='hospital', lazy='dynamic')
    appointments = db.relationship('Appointment', backref='hospital', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'address': self.address,
            'phone': self.phone,
            'email': self.email,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
