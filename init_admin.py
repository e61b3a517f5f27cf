#!/usr/bin/env python3
"""
Initialize a demo hospital with default users.
Run with: python3 init_admin.py
"""
from hms import create_app
from hms.extensions import db
from hms.models import Hospital, Branch, Patient, User

DEFAULT_HOSPITAL = {
    'name': 'Harmony Medical',
    'phone': '',
    'email': 'contact@harmony.example',
}

# Default users to create
DEFAULT_USERS = [
    {
        'username': 'admin',
        'email': 'admin@harmony.example',
        'password': 'admin123',
        'first_name': 'Hospital',
        'last_name': 'Admin',
        'role': 'admin',
    },
    {
        'username': 'doctor1',
        'email': 'doctor1@harmony.example',
        'password': 'doctor123',
        'first_name': 'John',
        'last_name': 'Mehta',
        'role': 'doctor',
        'specialization': 'General Medicine',
        'consultation_fee': 500,
    },
    {
        'username': 'receptionist1',
        'email': 'receptionist1@harmony.example',
        'password': 'recep123',
        'first_name': 'Bob',
        'last_name': 'Receptionist',
        'role': 'receptionist',
    },
    {
        'username': 'patient1',
        'email': 'patient1@harmony.example',
        'password': 'patient123',
        'first_name': 'Asha',
        'last_name': 'Rao',
        'role': 'patient',
    },
]


def create_defaults():
    """Create the demo hospital, its main branch and default users"""
    app = create_app()

    with app.app_context():
        db.create_all()
        print("=" * 60)
        print("Initializing Hospital and Users")
        print("=" * 60)
        print()

        hospital = Hospital.query.filter_by(name=DEFAULT_HOSPITAL['name']).first()
        if not hospital:
            hospital = Hospital(**DEFAULT_HOSPITAL)
            db.session.add(hospital)
            db.session.flush()
            db.session.add(Branch(hospital_id=hospital.id, name='Main'))
            print(f"  ✓ Created hospital: {hospital.name}")

        created_count = 0
        for user_data in DEFAULT_USERS:
            username = user_data['username']

            if User.query.filter_by(username=username).first():
                print(f"  - User '{username}' already exists (skipping)")
                continue

            fields = {k: v for k, v in user_data.items() if k != 'password'}
            user = User(hospital_id=hospital.id, is_active=True, **fields)
            user.set_password(user_data['password'])

            if user.role == 'patient':
                patient = Patient(
                    hospital_id=hospital.id,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    email=user.email,
                    created_by='patient',
                )
                db.session.add(patient)
                db.session.flush()
                user.patient_id = patient.id

            db.session.add(user)
            created_count += 1
            print(f"  ✓ Created: {username} ({user.role}) - Password: {user_data['password']}")

        db.session.commit()

        print()
        print("=" * 60)
        print(f"✅ Created {created_count} new user(s)")
        print("=" * 60)
        print("\n⚠️  IMPORTANT: Change passwords after first login!")


if __name__ == '__main__':
    create_defaults()
