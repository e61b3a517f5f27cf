"""
Compose the analytics sections served by the dashboard endpoints.
"""
from typing import Dict, Iterable, Optional

from .records import parse_appointment_records, parse_patient_records, parse_receptionist_records
from .time_ranges import filter_by_branch, filter_by_time_range
from .trends import compute_trends
from .revenue import (
    compute_revenue_summary,
    compute_revenue_by_doctor,
    compute_payment_method_distribution,
    compute_monthly_revenue_series,
    predict_next_month_revenue,
)
from .frequency import compute_condition_frequency, compute_medicine_frequency, SUMMARY_TOP_N
from .performance import compute_doctor_scorecards, compute_booking_sources, compute_receptionist_scorecards

SECTIONS = ('trends', 'revenue', 'conditions', 'medicines', 'doctors', 'receptionists')


def scope_records(rows: Iterable, branch_id=None, time_range: Optional[str] = None, now=None,
                  field: str = 'appointment_date'):
    """Parse raw appointment rows, then apply branch and time-range filters."""
    records = filter_by_branch(parse_appointment_records(rows), branch_id)
    return filter_by_time_range(records, time_range, now, field=field)


def build_revenue_report(records, now=None) -> Dict:
    series = compute_monthly_revenue_series(records, now)
    return {
        'summary': compute_revenue_summary(records, now),
        'by_doctor': compute_revenue_by_doctor(records),
        'payment_methods': compute_payment_method_distribution(records),
        'monthly': series,
        'prediction': predict_next_month_revenue(series),
    }


def build_receptionist_report(appointment_rows, receptionist_rows, patient_rows=(),
                              branch_id=None, time_range=None, now=None) -> Dict:
    """
    Receptionist figures are filtered on created_at, not the appointment date.
    Patients carry no branch, so patients_added counts the whole hospital under any branch filter.
    """
    appointments = scope_records(appointment_rows, branch_id, time_range, now, field='created_at')
    patients = filter_by_time_range(parse_patient_records(patient_rows), time_range, now, field='created_at')
    receptionists = parse_receptionist_records(receptionist_rows)
    return {
        'booking_sources': compute_booking_sources(appointments),
        'receptionists': compute_receptionist_scorecards(appointments, receptionists, patients),
    }


def build_dashboard(appointment_rows: Iterable, patient_rows: Iterable = (), receptionist_rows: Iterable = (),
                    branch_id=None, time_range: Optional[str] = 'all', now=None,
                    top_n: int = SUMMARY_TOP_N, sections: Iterable[str] = SECTIONS) -> Dict:
    """
    Build the requested dashboard sections from raw rows.

    Trends always span their own calendar windows and ignore time_range;
    the other sections only see records inside time_range.
    """
    appointment_rows = list(appointment_rows)
    everything = scope_records(appointment_rows, branch_id, None, now)
    scoped = filter_by_time_range(everything, time_range, now)

    result = {}
    for section in sections:
        if section == 'trends':
            result['trends'] = compute_trends(everything, now)
        elif section == 'revenue':
            result['revenue'] = build_revenue_report(scoped, now)
        elif section == 'conditions':
            result['conditions'] = compute_condition_frequency(scoped, top_n)
        elif section == 'medicines':
            result['medicines'] = compute_medicine_frequency(scoped, top_n)
        elif section == 'doctors':
            result['doctors'] = compute_doctor_scorecards(scoped)
        elif section == 'receptionists':
            result['receptionists'] = build_receptionist_report(
                appointment_rows, receptionist_rows, patient_rows, branch_id, time_range, now
            )
        else:
            raise ValueError(f"Unknown analytics section: {section}")
    return result
