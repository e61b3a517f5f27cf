"""
Shared pytest fixtures: app on in-memory SQLite, a seeded hospital,
AuthContext builders and JWT headers per role.
"""
from types import SimpleNamespace

import pytest
from flask_jwt_extended import create_access_token

from hms import create_app
from hms.extensions import db as _db
from hms.models import Hospital, Branch, Patient, User
from hms.routes.auth import token_claims
from hms.utils.decorators import AuthContext

BOOKING_DATE = '2030-06-03'  # a Monday


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


def _user(hospital_id, username, role, **fields):
    user = User(
        hospital_id=hospital_id,
        username=username,
        email=f'{username}@harmony.example',
        first_name=fields.pop('first_name', username.title()),
        last_name=fields.pop('last_name', ''),
        role=role,
        is_active=True,
        **fields,
    )
    user.set_password('secret123')
    _db.session.add(user)
    return user


def seed_hospital():
    """Two hospitals with staff and patients; returns their ids"""
    hospital = Hospital(name='Harmony Medical')
    other_hospital = Hospital(name='Riverside Clinic')
    _db.session.add_all([hospital, other_hospital])
    _db.session.flush()

    branch = Branch(hospital_id=hospital.id, name='Main')
    patient = Patient(hospital_id=hospital.id, first_name='Asha', last_name='Rao',
                      phone='9876543210', created_by='receptionist')
    second_patient = Patient(hospital_id=hospital.id, first_name='Ravi', last_name='Kumar',
                             phone='9123456780', created_by='patient')
    outsider = Patient(hospital_id=other_hospital.id, first_name='Lena', last_name='Moss')
    _db.session.add_all([branch, patient, second_patient, outsider])
    _db.session.flush()

    doctor = _user(hospital.id, 'doctor1', 'doctor', first_name='John', last_name='Mehta',
                   specialization='General Medicine', consultation_fee=500)
    doctor2 = _user(hospital.id, 'doctor2', 'doctor', first_name='Priya', last_name='Nair',
                    specialization='Cardiology', consultation_fee=800)
    receptionist = _user(hospital.id, 'reception1', 'receptionist', first_name='Bob')
    admin = _user(hospital.id, 'admin1', 'admin', first_name='Hospital', last_name='Admin')
    patient_user = _user(hospital.id, 'patient1', 'patient', first_name='Asha', patient_id=patient.id)
    other_doctor = _user(other_hospital.id, 'doctor9', 'doctor', first_name='Sam', consultation_fee=300)
    _db.session.commit()

    return SimpleNamespace(
        hospital_id=hospital.id,
        other_hospital_id=other_hospital.id,
        branch_id=branch.id,
        patient_id=patient.id,
        second_patient_id=second_patient.id,
        outsider_patient_id=outsider.id,
        doctor_id=doctor.id,
        doctor2_id=doctor2.id,
        receptionist_id=receptionist.id,
        admin_id=admin.id,
        patient_user_id=patient_user.id,
        other_doctor_id=other_doctor.id,
    )


@pytest.fixture
def seed(app):
    return seed_hospital()


@pytest.fixture
def auth_for(seed):
    """AuthContext for a seeded role: auth_for('receptionist')"""
    users = {
        'doctor': (seed.doctor_id, None),
        'doctor2': (seed.doctor2_id, None),
        'receptionist': (seed.receptionist_id, None),
        'admin': (seed.admin_id, None),
        'patient': (seed.patient_user_id, seed.patient_id),
    }

    def build(name):
        user_id, patient_id = users[name]
        role = 'doctor' if name == 'doctor2' else name
        return AuthContext(user_id=user_id, role=role, hospital_id=seed.hospital_id, patient_id=patient_id)

    return build


@pytest.fixture
def headers_for(app, seed):
    """Authorization headers for a seeded user id"""
    def build(user_id):
        user = _db.session.get(User, user_id)
        token = create_access_token(identity=str(user.id), additional_claims=token_claims(user))
        return {'Authorization': f'Bearer {token}'}

    return build


@pytest.fixture
def booking(seed):
    """Payload builder for a booking of the seeded patient"""
    def build(**overrides):
        payload = {
            'patient_id': seed.patient_id,
            'patient_name': 'Asha Rao',
            'chief_complaint': 'Fever and cough',
        }
        payload.update(overrides)
        return payload

    return build
