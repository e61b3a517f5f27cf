"""
Doctor and receptionist scorecards.
"""
import math
from typing import Dict, Iterable, List, Optional

from .revenue import counts_as_revenue, revenue_amount, round_half_up

RANK_BADGES = ('gold', 'silver', 'bronze')

WALK_IN_SOURCE = 'receptionist'
WHATSAPP_SOURCES = ('whatsapp', 'whatsapp_flow')

# minutes credited per visit by status
CONSULTATION_MINUTES = {'completed': 20, 'confirmed': 15}


def format_hour12(hour: int) -> str:
    if hour == 0:
        return '12 AM'
    if hour < 12:
        return f'{hour} AM'
    if hour == 12:
        return '12 PM'
    return f'{hour - 12} PM'


def _hour_of(appointment_time: Optional[str]) -> Optional[int]:
    if not appointment_time:
        return None
    head = appointment_time.split(':')[0].strip()
    if not head.isdigit():
        return None
    hour = int(head)
    return hour if 0 <= hour <= 23 else None


def _percentage(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def compute_doctor_scorecards(records: Iterable) -> List[Dict]:
    """
    Per-doctor performance, sorted by unique patients seen.
    The top three carry rank 1-3 and a gold/silver/bronze badge.
    """
    doctors: Dict[str, Dict] = {}
    for record in records:
        if not record.doctor_id or not record.doctor_name:
            continue
        data = doctors.setdefault(record.doctor_id, {
            'doctor_id': record.doctor_id,
            'doctor_name': record.doctor_name,
            'doctor_specialization': record.doctor_specialization or 'General',
            'patients': set(),
            'revenue': [],
            'hours': {},
            'booked': 0,
            'walk_ins': 0,
            'days': set(),
            'minutes': 0,
            'consultations': 0,
        })

        if record.patient_id:
            data['patients'].add(record.patient_id)
        if counts_as_revenue(record):
            data['revenue'].append(revenue_amount(record))

        hour = _hour_of(record.appointment_time)
        if hour is not None:
            data['hours'][hour] = data['hours'].get(hour, 0) + 1

        if record.created_by == WALK_IN_SOURCE:
            data['walk_ins'] += 1
        else:
            data['booked'] += 1

        if record.appointment_date is not None:
            data['days'].add(record.appointment_date)

        minutes = CONSULTATION_MINUTES.get(record.status)
        if minutes:
            data['minutes'] += minutes
            data['consultations'] += 1

    scorecards = []
    for data in doctors.values():
        peak_hours = sorted(data['hours'].items(), key=lambda item: (-item[1], item[0]))[:3]
        total = data['booked'] + data['walk_ins']
        scorecards.append({
            'doctor_id': data['doctor_id'],
            'doctor_name': data['doctor_name'],
            'doctor_specialization': data['doctor_specialization'],
            'total_patients_seen': len(data['patients']),
            'revenue_contribution': round_half_up(math.fsum(data['revenue'])),
            'average_consultation_time': (
                round_half_up(data['minutes'] / data['consultations']) if data['consultations'] else 0
            ),
            'peak_active_hours': [
                {'hour': hour, 'hour12': format_hour12(hour), 'appointment_count': count}
                for hour, count in peak_hours
            ],
            'appointment_vs_walk_in_ratio': {
                'appointments': data['booked'],
                'walk_ins': data['walk_ins'],
                'appointment_percentage': _percentage(data['booked'], total),
                'walk_in_percentage': _percentage(data['walk_ins'], total),
            },
            'availability_days': len(data['days']),
            'rank': None,
            'badge': None,
        })

    scorecards.sort(key=lambda card: -card['total_patients_seen'])
    for index, badge in enumerate(RANK_BADGES[:len(scorecards)]):
        scorecards[index]['rank'] = index + 1
        scorecards[index]['badge'] = badge
    return scorecards


def booking_source_of(record) -> Optional[str]:
    """'whatsapp', 'receptionist', 'portal' or None for doctor-created bookings."""
    if record.created_by in WHATSAPP_SOURCES:
        return 'whatsapp'
    if record.created_by == 'receptionist':
        return 'receptionist'
    if record.created_by == 'patient' or (not record.created_by and record.patient_id):
        return 'portal'
    return None


def compute_booking_sources(records: Iterable) -> Dict[str, Dict]:
    """
    Booking channel distribution. 'manual' is receptionist + portal.
    Percentages are of all records, so doctor-created bookings dilute them.
    """
    records = list(records)
    counts = {'whatsapp': 0, 'receptionist': 0, 'portal': 0}
    for record in records:
        source = booking_source_of(record)
        if source:
            counts[source] += 1
    counts['manual'] = counts['receptionist'] + counts['portal']

    total = len(records)
    return {
        source: {'count': count, 'percentage': _percentage(count, total)}
        for source, count in counts.items()
    }


def compute_receptionist_scorecards(appointments: Iterable, receptionists: Iterable,
                                    patients: Iterable = ()) -> List[Dict]:
    """
    Per-receptionist scorecards.

    Appointments and patients carry no receptionist attribution, so the
    hospital-wide receptionist totals are divided equally and every
    receptionist gets the same figures. Score weights: 40% patients added,
    40% appointments booked, 20% revenue, each relative to the maximum.
    """
    receptionists = list(receptionists)
    if not receptionists:
        return []
    share = len(receptionists)

    booked = [a for a in appointments if a.created_by == 'receptionist']
    patients_added = sum(1 for p in patients if p.created_by == 'receptionist') / share
    appointments_booked = len(booked) / share
    revenue = math.fsum(a.payment_amount or 0 for a in booked) / share

    max_patients = max(patients_added, 1)
    max_appointments = max(appointments_booked, 1)
    max_revenue = max(revenue, 1)
    score = (
        (patients_added / max_patients) * 40
        + (appointments_booked / max_appointments) * 40
        + (revenue / max_revenue) * 20
    )

    scorecards = [
        {
            'receptionist_id': receptionist.id,
            'receptionist_name': receptionist.name,
            'receptionist_email': receptionist.email,
            'patients_added': round_half_up(patients_added),
            'appointments_booked': round_half_up(appointments_booked),
            'total_revenue': round_half_up(revenue),
            'performance_score': round_half_up(score),
        }
        for receptionist in receptionists
    ]
    scorecards.sort(key=lambda card: -card['performance_score'])
    return scorecards
