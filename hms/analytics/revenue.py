"""
Revenue rollups over completed appointments.
"""
import math
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from .time_ranges import today_of
from .trends import MONTH_ABBR


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def revenue_amount(record) -> float:
    """Billed amount: payment_amount, else the consultation fee."""
    amount = record.payment_amount or record.total_consultation_fee or 0
    return amount if amount > 0 else 0


def counts_as_revenue(record) -> bool:
    return (
        record.status == 'completed'
        and record.payment_status != 'cancelled'
        and record.appointment_date is not None
        and revenue_amount(record) > 0
    )


def compute_revenue(records: Iterable, window_days: Optional[int] = None, now=None) -> float:
    """
    Sum of revenue_amount over revenue-eligible records, optionally limited
    to appointment dates on or after today - window_days. Order independent.
    """
    cutoff = None if window_days is None else today_of(now) - timedelta(days=window_days)
    total = math.fsum(
        revenue_amount(r) for r in records
        if counts_as_revenue(r) and (cutoff is None or r.appointment_date >= cutoff)
    )
    return round(total, 2)


def compute_revenue_summary(records: Iterable, now=None) -> Dict[str, float]:
    records = list(records)
    return {
        'weekly': compute_revenue(records, 7, now),
        'monthly': compute_revenue(records, 30, now),
        'all_time': compute_revenue(records),
    }


def compute_revenue_by_doctor(records: Iterable, limit: int = 10) -> List[Dict]:
    by_doctor: Dict[str, Dict] = {}
    for record in records:
        if not record.doctor_id or not counts_as_revenue(record):
            continue
        entry = by_doctor.setdefault(record.doctor_id, {
            'doctor_id': record.doctor_id,
            'doctor_name': record.doctor_name or 'Unknown',
            'specialization': record.doctor_specialization or '',
            'amounts': [],
        })
        if not entry['specialization'] and record.doctor_specialization:
            entry['specialization'] = record.doctor_specialization
        entry['amounts'].append(revenue_amount(record))

    rows = []
    for entry in by_doctor.values():
        total = math.fsum(entry['amounts'])
        count = len(entry['amounts'])
        rows.append({
            'doctor_id': entry['doctor_id'],
            'doctor_name': entry['doctor_name'],
            'specialization': entry['specialization'] or 'Unknown',
            'total_revenue': round(total, 2),
            'transaction_count': count,
            'average_transaction': round(total / count, 2),
        })
    rows.sort(key=lambda row: -row['total_revenue'])
    return rows[:limit]


def compute_payment_method_distribution(records: Iterable) -> Dict[str, Dict]:
    distribution: Dict[str, Dict] = {}
    for record in records:
        if not counts_as_revenue(record):
            continue
        method = record.payment_method or 'unknown'
        entry = distribution.setdefault(method, {'count': 0, 'amount': 0.0})
        entry['count'] += 1
        entry['amount'] = round(entry['amount'] + revenue_amount(record), 2)
    return distribution


def _shift_month(year: int, month: int, delta: int):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def compute_monthly_revenue_series(records: Iterable, now=None, months: int = 12) -> List[Dict]:
    """Revenue per calendar month for the last `months` months, oldest first."""
    eligible = [r for r in records if counts_as_revenue(r)]
    today = today_of(now)

    series = []
    for back in range(months - 1, -1, -1):
        year, month = _shift_month(today.year, today.month, -back)
        start = date(year, month, 1)
        next_year, next_month = _shift_month(year, month, 1)
        end = date(next_year, next_month, 1)
        amounts = [revenue_amount(r) for r in eligible if start <= r.appointment_date < end]
        series.append({
            'month': f"{MONTH_ABBR[month - 1]} {year}",
            'month_key': f"{year:04d}-{month:02d}",
            'revenue': round(math.fsum(amounts), 2),
            'transactions': len(amounts),
        })
    return series


def predict_next_month_revenue(series: List[Dict]) -> Dict:
    """
    Least-squares line through the last six months of revenue.

    Confidence comes from the coefficient of variation of those months:
    under 20% is high, under 40% medium, otherwise low.
    """
    prediction = {
        'predicted_revenue': 0,
        'confidence': 'low',
        'trend': 'stable',
        'percentage_change': 0.0,
    }
    revenues = [m['revenue'] for m in series[-6:]]
    n = len(revenues)
    if n < 3:
        return prediction

    xs = range(1, n + 1)
    sum_x = sum(xs)
    sum_y = math.fsum(revenues)
    sum_xy = math.fsum(x * y for x, y in zip(xs, revenues))
    sum_x2 = sum(x * x for x in xs)

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n
    predicted = slope * (n + 1) + intercept

    last_month = revenues[-1]
    change = ((predicted - last_month) / last_month) * 100 if last_month > 0 else 0.0

    mean = sum_y / n
    std_dev = math.sqrt(math.fsum((r - mean) ** 2 for r in revenues) / n)
    variation = (std_dev / mean) * 100 if mean > 0 else 100
    if variation < 20:
        confidence = 'high'
    elif variation < 40:
        confidence = 'medium'
    else:
        confidence = 'low'

    prediction.update({
        'predicted_revenue': max(0, round_half_up(predicted)),
        'confidence': confidence,
        'trend': 'increasing' if slope > 0 else 'decreasing' if slope < 0 else 'stable',
        'percentage_change': round(change, 1),
    })
    return prediction
