"""
Analytics aggregation: pure functions from appointment/patient records
to trend series, revenue rollups, frequency tables and scorecards.
"""
from .records import (
    AppointmentRecord,
    PatientRecord,
    ReceptionistRecord,
    parse_appointment_records,
    parse_patient_records,
    parse_receptionist_records,
)
from .time_ranges import TIME_RANGE_DAYS, filter_by_branch, filter_by_time_range, resolve_time_range
from .trends import compute_trends, compute_weekly_trend, compute_monthly_trend, compute_yearly_trend
from .revenue import (
    compute_revenue,
    compute_revenue_summary,
    compute_revenue_by_doctor,
    compute_payment_method_distribution,
    compute_monthly_revenue_series,
    predict_next_month_revenue,
)
from .frequency import (
    PIE_CHART_TOP_N,
    SUMMARY_TOP_N,
    compute_condition_frequency,
    compute_medicine_frequency,
    extract_medicines,
    merge_top_n,
)
from .performance import compute_doctor_scorecards, compute_booking_sources, compute_receptionist_scorecards
from .dashboard import build_dashboard

__all__ = [
    "AppointmentRecord", "PatientRecord", "ReceptionistRecord",
    "parse_appointment_records", "parse_patient_records", "parse_receptionist_records",
    "TIME_RANGE_DAYS", "filter_by_branch", "filter_by_time_range", "resolve_time_range",
    "compute_trends", "compute_weekly_trend", "compute_monthly_trend", "compute_yearly_trend",
    "compute_revenue", "compute_revenue_summary", "compute_revenue_by_doctor",
    "compute_payment_method_distribution", "compute_monthly_revenue_series", "predict_next_month_revenue",
    "PIE_CHART_TOP_N", "SUMMARY_TOP_N", "compute_condition_frequency", "compute_medicine_frequency",
    "extract_medicines", "merge_top_n",
    "compute_doctor_scorecards", "compute_booking_sources", "compute_receptionist_scorecards",
    "build_dashboard",
]
