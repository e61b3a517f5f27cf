"""Initial hospital schema: tenants, users, patients, appointments, slot locks

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    op.create_table(
        'hospitals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=120), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True, server_default=sa.func.now()),
    )

    op.create_table(
        'branches',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('hospital_id', sa.Integer(), sa.ForeignKey('hospitals.id'), nullable=False, index=True),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        'patients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('hospital_id', sa.Integer(), sa.ForeignKey('hospitals.id'), nullable=False, index=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('gender', sa.String(length=20), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=120), nullable=True),
        sa.Column('blood_group', sa.String(length=5), nullable=True),
        sa.Column('allergies', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=20), nullable=True, index=True),
        *_timestamps(),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('hospital_id', sa.Integer(), sa.ForeignKey('hospitals.id'), nullable=True, index=True),
        sa.Column('username', sa.String(length=80), nullable=False, unique=True, index=True),
        sa.Column('email', sa.String(length=120), nullable=False, unique=True, index=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, index=True),
        sa.Column('specialization', sa.String(length=100), nullable=True),
        sa.Column('consultation_fee', sa.Float(), nullable=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id'), nullable=True, index=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('login_count', sa.Integer(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('hospital_id', sa.Integer(), sa.ForeignKey('hospitals.id'), nullable=False, index=True),
        sa.Column('branch_id', sa.Integer(), sa.ForeignKey('branches.id'), nullable=True, index=True),
        sa.Column('branch_name', sa.String(length=150), nullable=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id'), nullable=False, index=True),
        sa.Column('patient_name', sa.String(length=200), nullable=False),
        sa.Column('patient_phone', sa.String(length=20), nullable=True),
        sa.Column('doctor_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('doctor_name', sa.String(length=200), nullable=False),
        sa.Column('doctor_specialization', sa.String(length=100), nullable=True),
        sa.Column('appointment_date', sa.Date(), nullable=False, index=True),
        sa.Column('appointment_time', sa.String(length=5), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='confirmed', index=True),
        sa.Column('booking_type', sa.String(length=20), nullable=False, server_default='regular'),
        sa.Column('is_overbooked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('payment_amount', sa.Float(), nullable=True),
        sa.Column('total_consultation_fee', sa.Float(), nullable=True),
        sa.Column('payment_status', sa.String(length=20), nullable=True),
        sa.Column('payment_method', sa.String(length=20), nullable=True),
        sa.Column('created_by', sa.String(length=20), nullable=False, server_default='patient', index=True),
        sa.Column('chief_complaint', sa.Text(), nullable=True),
        sa.Column('medicine', sa.Text(), nullable=True),
        sa.Column('doctor_notes', sa.Text(), nullable=True),
        sa.Column('reminder_sent_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    # slot_key primary key is the double-booking guard
    op.create_table(
        'slot_locks',
        sa.Column('slot_key', sa.String(length=200), primary_key=True),
        sa.Column('hospital_id', sa.Integer(), sa.ForeignKey('hospitals.id'), nullable=False, index=True),
        sa.Column('appointment_id', sa.Integer(), sa.ForeignKey('appointments.id'), nullable=False, index=True),
        sa.Column('doctor_id', sa.Integer(), nullable=False, index=True),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('appointment_time', sa.String(length=5), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('hospital_id', sa.Integer(), nullable=True, index=True),
        sa.Column('entity_type', sa.String(length=64), nullable=False, index=True),
        sa.Column('entity_id', sa.String(length=64), nullable=True, index=True),
        sa.Column('action', sa.String(length=32), nullable=False, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True, index=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )


def downgrade():
    op.drop_table('audit_logs')
    op.drop_table('slot_locks')
    op.drop_table('appointments')
    op.drop_table('users')
    op.drop_table('patients')
    op.drop_table('branches')
    op.drop_table('hospitals')
