from hms.extensions import db
from .base import TimestampMixin


class Branch(db.Model, TimestampMixin):
    __tablename__ = 'branches'

    id = db.Column(db.Integer, primary_key=True)
    hospital_id = db.Column(db.Integer, db.ForeignKey('hospitals.id'), nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)
    address = db.Column(db.String(255))
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'hospital_id': self.hospital_id,
            'name': self.name,
            'address': self.address,
            'is_active': self.is_active,
        }

    def __repr__(self):
        return f"<Branch {self.name} ({self.hospital_id})>"
