"""
Slot lock: one row per occupied (doctor, date, time).
The primary key on slot_key is the compare-and-set that prevents double booking.
"""
from datetime import datetime
from hms.extensions import db


class SlotLock(db.Model):
    __tablename__ = 'slot_locks'

    slot_key = db.Column(db.String(200), primary_key=True)
    hospital_id = db.Column(db.Integer, db.ForeignKey('hospitals.id'), nullable=False, index=True)
    appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.id'), nullable=False, index=True)
    doctor_id = db.Column(db.Integer, nullable=False, index=True)
    appointment_date = db.Column(db.Date, nullable=False)
    appointment_time = db.Column(db.String(5), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'slot_key': self.slot_key,
            'hospital_id': self.hospital_id,
            'appointment_id': self.appointment_id,
            'doctor_id': self.doctor_id,
            'appointment_date': self.appointment_date.isoformat() if self.appointment_date else None,
            'appointment_time': self.appointment_time,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<SlotLock {self.slot_key} -> {self.appointment_id}>"
