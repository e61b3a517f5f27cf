"""
Appointment volume trends: current week by day, current month in
five-day ranges, current year by month.

Every bucket is the half-open interval [start, end) over appointment
dates; records without a parsable date are dropped before bucketing.
"""
import calendar
from datetime import date, timedelta
from typing import Dict, Iterable, List, Tuple

from .time_ranges import today_of

WEEKDAY_ABBR = ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun')
MONTH_ABBR = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')
MONTH_NAMES = (
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December',
)

MONTH_DAY_RANGES = ((1, 5), (6, 10), (11, 15), (16, 20), (21, 25), (26, 31))


def appointment_dates(records: Iterable) -> List[date]:
    return [r.appointment_date for r in records if r.appointment_date is not None]


def _count_between(dates: List[date], start: date, end: date) -> int:
    return sum(1 for d in dates if start <= d < end)


def _point(label: str, full_label: str, count: int) -> Dict:
    return {'label': label, 'full_label': full_label, 'count': count}


def compute_weekly_trend(dates: List[date], now=None) -> Tuple[List[Dict], int]:
    today = today_of(now)
    monday = today - timedelta(days=today.weekday())

    points = []
    for offset in range(7):
        day = monday + timedelta(days=offset)
        count = _count_between(dates, day, day + timedelta(days=1))
        full_label = f"{WEEKDAY_ABBR[day.weekday()]}, {MONTH_ABBR[day.month - 1]} {day.day}"
        points.append(_point(WEEKDAY_ABBR[day.weekday()], full_label, count))
    return points, sum(p['count'] for p in points)


def compute_monthly_trend(dates: List[date], now=None) -> Tuple[List[Dict], int]:
    today = today_of(now)
    days_in_month = calendar.monthrange(today.year, today.month)[1]

    points = []
    for start_day, end_day in MONTH_DAY_RANGES:
        if start_day > days_in_month:
            continue
        end_day = min(end_day, days_in_month)
        start = date(today.year, today.month, start_day)
        end = date(today.year, today.month, end_day) + timedelta(days=1)
        label = f"{start_day}-{end_day}"
        full_label = f"{label} {MONTH_ABBR[today.month - 1]} {today.year}"
        points.append(_point(label, full_label, _count_between(dates, start, end)))
    return points, sum(p['count'] for p in points)


def compute_yearly_trend(dates: List[date], now=None) -> Tuple[List[Dict], int]:
    year = today_of(now).year

    points = []
    for month in range(1, 13):
        start = date(year, month, 1)
        end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        full_label = f"{MONTH_NAMES[month - 1]} {year}"
        points.append(_point(MONTH_ABBR[month - 1], full_label, _count_between(dates, start, end)))
    return points, sum(p['count'] for p in points)


def compute_trends(records: Iterable, now=None) -> Dict:
    """
    Returns:
        dict: {'weekly': [...], 'monthly': [...], 'yearly': [...],
               'totals': {'weekly': int, 'monthly': int, 'yearly': int}}
        where each point is {'label', 'full_label', 'count'}
    """
    dates = appointment_dates(records)
    weekly, weekly_total = compute_weekly_trend(dates, now)
    monthly, monthly_total = compute_monthly_trend(dates, now)
    yearly, yearly_total = compute_yearly_trend(dates, now)
    return {
        'weekly': weekly,
        'monthly': monthly,
        'yearly': yearly,
        'totals': {
            'weekly': weekly_total,
            'monthly': monthly_total,
            'yearly': yearly_total,
        },
    }
