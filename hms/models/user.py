from hms.extensions import db, bcrypt
from .base import TimestampMixin

ROLES = ('admin', 'doctor', 'receptionist', 'patient')


class User(db.Model, TimestampMixin):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    hospital_id = db.Column(db.Integer, db.ForeignKey('hospitals.id'), nullable=True, index=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # Personal Information
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False, default='')
    phone = db.Column(db.String(20))

    # Role - one of: 'admin', 'doctor', 'receptionist', 'patient'
    role = db.Column(db.String(20), nullable=False, index=True)

    # Doctor profile (only meaningful when role == 'doctor')
    specialization = db.Column(db.String(100))
    consultation_fee = db.Column(db.Float, default=0)

    # Patient login is linked to the patient record it books for
    patient_id = db.Column(db.Integer, db.ForeignKey('patients.id'), nullable=True, index=True)

    # Status
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_login = db.Column(db.DateTime, nullable=True)
    login_count = db.Column(db.Integer, default=0)

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        """Check if provided password matches hash"""
        return bcrypt.check_password_hash(self.password_hash, password)

    @property
    def display_name(self):
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        if self.role == 'doctor' and name and not name.lower().startswith('dr'):
            return f"Dr. {name}"
        return name or self.username

    def to_dict(self):
        data = {
            'id': self.id,
            'hospital_id': self.hospital_id,
            'username': self.username,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'phone': self.phone,
            'role': self.role,
            'is_active': self.is_active,
        }
        if self.role == 'doctor':
            data['specialization'] = self.specialization
            data['consultation_fee'] = self.consultation_fee
        if self.role == 'patient':
            data['patient_id'] = self.patient_id
        return data

    def __repr__(self):
        return f"<User {self.username} ({self.first_name} {self.last_name}) - {self.role}>"
