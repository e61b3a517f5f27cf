from hms.extensions import db
from .base import TimestampMixin

APPOINTMENT_STATUSES = (
    'confirmed',
    'completed',
    'cancelled',
    'rescheduled',
    'not_attended',
    'whatsapp_pending',
)

BOOKING_SOURCES = ('patient', 'receptionist', 'doctor', 'whatsapp', 'whatsapp_flow')

# Booking types that may share an occupied slot
OVERBOOKING_TYPES = ('emergency', 'recheck')


class Appointment(db.Model, TimestampMixin):
    __tablename__ = 'appointments'

    id = db.Column(db.Integer, primary_key=True)
    hospital_id = db.Column(db.Integer, db.ForeignKey('hospitals.id'), nullable=False, index=True)
    branch_id = db.Column(db.Integer, db.ForeignKey('branches.id'), nullable=True, index=True)
    branch_name = db.Column(db.String(150))

    patient_id = db.Column(db.Integer, db.ForeignKey('patients.id'), nullable=False, index=True)
    patient_name = db.Column(db.String(200), nullable=False)
    patient_phone = db.Column(db.String(20))

    # Doctor details are denormalized so reports survive profile edits
    doctor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    doctor_name = db.Column(db.String(200), nullable=False)
    doctor_specialization = db.Column(db.String(100))

    appointment_date = db.Column(db.Date, nullable=False, index=True)
    appointment_time = db.Column(db.String(5), nullable=False)  # "HH:MM", 24-hour

    status = db.Column(db.String(20), nullable=False, default='confirmed', index=True)
    booking_type = db.Column(db.String(20), nullable=False, default='regular')  # regular, emergency, recheck
    is_overbooked = db.Column(db.Boolean, nullable=False, default=False)

    # Billing
    payment_amount = db.Column(db.Float, default=0)
    total_consultation_fee = db.Column(db.Float, default=0)
    payment_status = db.Column(db.String(20), default='pending')  # pending, paid, refunded, cancelled
    payment_method = db.Column(db.String(20))  # cash, card, upi, wallet

    created_by = db.Column(db.String(20), nullable=False, default='patient', index=True)
    chief_complaint = db.Column(db.Text)
    medicine = db.Column(db.Text)  # free-text prescription written on completion
    doctor_notes = db.Column(db.Text)

    reminder_sent_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'hospital_id': self.hospital_id,
            'branch_id': self.branch_id,
            'branch_name': self.branch_name,
            'patient_id': self.patient_id,
            'patient_name': self.patient_name,
            'patient_phone': self.patient_phone,
            'doctor_id': self.doctor_id,
            'doctor_name': self.doctor_name,
            'doctor_specialization': self.doctor_specialization,
            'appointment_date': self.appointment_date.isoformat() if self.appointment_date else None,
            'appointment_time': self.appointment_time,
            'status': self.status,
            'booking_type': self.booking_type,
            'is_overbooked': self.is_overbooked,
            'payment_amount': self.payment_amount,
            'total_consultation_fee': self.total_consultation_fee,
            'payment_status': self.payment_status,
            'payment_method': self.payment_method,
            'created_by': self.created_by,
            'chief_complaint': self.chief_complaint,
            'medicine': self.medicine,
            'doctor_notes': self.doctor_notes,
            'reminder_sent_at': self.reminder_sent_at.isoformat() if self.reminder_sent_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Appointment {self.patient_id} - {self.doctor_name} on {self.appointment_date} {self.appointment_time}>"
