from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

TIME_RANGE_DAYS = {
    '30days': 30,
    '3months': 90,
    '6months': 180,
    '1year': 365,
    'all': None,
}


def today_of(now=None) -> date:
    if now is None:
        return date.today()
    if isinstance(now, datetime):
        return now.date()
    return now


def resolve_time_range(time_range: Optional[str]) -> Optional[int]:
    """Days covered by a named range; None means unbounded. Raises ValueError for unknown names."""
    if not time_range:
        return None
    if time_range not in TIME_RANGE_DAYS:
        raise ValueError(f"Invalid time_range. Must be one of: {', '.join(TIME_RANGE_DAYS)}")
    return TIME_RANGE_DAYS[time_range]


def filter_by_time_range(records: Iterable, time_range: Optional[str], now=None,
                         field: str = 'appointment_date') -> List:
    """Keep records whose `field` falls on or after today - range. Undated records only survive 'all'."""
    days = resolve_time_range(time_range)
    if days is None:
        return list(records)

    cutoff = today_of(now) - timedelta(days=days)
    kept = []
    for record in records:
        value = getattr(record, field, None)
        if isinstance(value, datetime):
            value = value.date()
        if value is not None and value >= cutoff:
            kept.append(record)
    return kept


def filter_by_branch(records: Iterable, branch_id=None) -> List:
    if branch_id in (None, '', 'all'):
        return list(records)
    return [r for r in records if r.branch_id is not None and str(r.branch_id) == str(branch_id)]
