"""
Analytics Service
Loads tenant-scoped rows and hands them to the pure aggregation pipeline
"""
import logging
from typing import Optional

from hms.analytics import build_dashboard, resolve_time_range, PIE_CHART_TOP_N, SUMMARY_TOP_N
from hms.analytics.dashboard import SECTIONS
from hms.exceptions import ValidationError
from hms.models import Appointment, Patient, User

logger = logging.getLogger(__name__)


def load_appointment_rows(session, auth):
    """Appointments of the caller's hospital; doctors only get their own."""
    query = session.query(Appointment).filter(Appointment.hospital_id == auth.hospital_id)
    if auth.role == 'doctor':
        query = query.filter(Appointment.doctor_id == auth.user_id)
    return [appointment.to_dict() for appointment in query.all()]


def load_patient_rows(session, auth):
    patients = session.query(Patient).filter(Patient.hospital_id == auth.hospital_id).all()
    return [patient.to_dict() for patient in patients]


def load_receptionist_rows(session, auth):
    receptionists = session.query(User).filter(
        User.hospital_id == auth.hospital_id,
        User.role == 'receptionist',
        User.is_active.is_(True),
    ).order_by(User.id.asc()).all()
    return [
        {
            'id': user.id,
            'first_name': user.first_name,
            'last_name': user.last_name,
            'email': user.email,
        }
        for user in receptionists
    ]


def _validate_top_n(top_n):
    if top_n is None:
        return SUMMARY_TOP_N
    if top_n not in (PIE_CHART_TOP_N, SUMMARY_TOP_N):
        raise ValidationError(f'top_n must be {PIE_CHART_TOP_N} or {SUMMARY_TOP_N}')
    return top_n


def get_analytics_section(session, auth, section: str, branch_id=None, time_range: Optional[str] = 'all',
                          top_n: Optional[int] = None, now=None):
    """
    Compute one dashboard section for the caller's hospital.

    Args:
        section: one of trends, revenue, conditions, medicines, doctors, receptionists
        branch_id: branch filter, 'all' or None for every branch
        time_range: 30days, 3months, 6months, 1year or all
        top_n: 6 (pie charts) or 8 (summary panels) for frequency sections
    """
    if section not in SECTIONS:
        raise ValidationError(f'Unknown analytics section: {section}')
    try:
        resolve_time_range(time_range)
    except ValueError as e:
        raise ValidationError(str(e))
    top_n = _validate_top_n(top_n)

    appointment_rows = load_appointment_rows(session, auth)
    patient_rows = ()
    receptionist_rows = ()
    if section == 'receptionists':
        patient_rows = load_patient_rows(session, auth)
        receptionist_rows = load_receptionist_rows(session, auth)

    logger.debug("Analytics %s for hospital %s: %d appointment rows", section, auth.hospital_id, len(appointment_rows))
    result = build_dashboard(
        appointment_rows,
        patient_rows,
        receptionist_rows,
        branch_id=branch_id,
        time_range=time_range or 'all',
        now=now,
        top_n=top_n,
        sections=(section,),
    )
    return result[section]
