from hms.extensions import db
from .base import TimestampMixin


class Patient(db.Model, TimestampMixin):
    __tablename__ = 'patients'

    id = db.Column(db.Integer, primary_key=True)
    hospital_id = db.Column(db.Integer, db.ForeignKey('hospitals.id'), nullable=False, index=True)

    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False, default='')
    gender = db.Column(db.String(20))
    date_of_birth = db.Column(db.Date)
    phone = db.Column(db.String(20))
    email = db.Column(db.String(120))
    blood_group = db.Column(db.String(5))
    allergies = db.Column(db.Text)

    # Who registered the patient: receptionist, patient, whatsapp, doctor
    created_by = db.Column(db.String(20), default='patient', index=True)

    appointments = db.relationship('Appointment', backref='patient', lazy='dynamic')

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name or ''}".strip()

    def to_dict(self):
        return {
            'id': self.id,
            'hospital_id': self.hospital_id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'gender': self.gender,
            'date_of_birth': self.date_of_birth.isoformat() if self.date_of_birth else None,
            'phone': self.phone,
            'email': self.email,
            'blood_group': self.blood_group,
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Patient {self.first_name} {self.last_name} ({self.id})>"
