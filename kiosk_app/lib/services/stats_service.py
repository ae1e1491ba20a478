from datetime import datetime, tzinfo
from typing import Dict, Iterable, List, Optional

import pandas as pd

from ..constants import LocationType, Period, VisitorCategory
from ..models.dto import CounterStatsDTO, VisitDTO, VisitFilterDTO
from .counter_service import as_comparable, period_start

FRAME_COLUMNS = [
    'id', 'category', 'location', 'timestamp', 'daily_number', 'weekly_number',
    'monthly_number', 'yearly_number', 'group_info', 'group_size'
]


def local_time(visit: VisitDTO, tz: Optional[tzinfo] = None) -> datetime:
    """Visit timestamp in the kiosk timezone, or as stored when tz is None."""
    if tz is not None and visit.timestamp.tzinfo is not None:
        return visit.timestamp.astimezone(tz)
    return visit.timestamp


def filter_visits(visits: Iterable[VisitDTO], visit_filter: Optional[VisitFilterDTO] = None,
                  tz: Optional[tzinfo] = None) -> List[VisitDTO]:
    """Apply location, category and inclusive date range filters, keeping order."""
    if visit_filter is None:
        return list(visits)

    result = []
    for visit in visits:
        if visit_filter.location and visit.location != visit_filter.location:
            continue
        if visit_filter.category and visit.category != visit_filter.category:
            continue
        day = local_time(visit, tz).date()
        if visit_filter.start_date and day < visit_filter.start_date:
            continue
        if visit_filter.end_date and day > visit_filter.end_date:
            continue
        result.append(visit)
    return result


def headcount(visits: Iterable[VisitDTO]) -> int:
    """Number of people, counting each group by its size."""
    return sum(v.group_size for v in visits)


def compute_counter_stats(visits: Iterable[VisitDTO], now: datetime) -> CounterStatsDTO:
    """Headcount since the start of the current day, week, month and year."""
    visits = list(visits)
    totals = {}
    for period in Period:
        start = period_start(now, period)
        totals[period.value] = headcount(v for v in visits if as_comparable(v.timestamp, now) >= start)
    return CounterStatsDTO(all_time=headcount(visits), **totals)


def visits_frame(visits: Iterable[VisitDTO]) -> pd.DataFrame:
    """Visit log as a DataFrame, enum columns as their plain values."""
    rows = [v.model_dump() for v in visits]
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    if not df.empty:
        df['category'] = df['category'].map(lambda c: VisitorCategory(c).value)
        df['location'] = df['location'].map(lambda loc: LocationType(loc).value)
    return df


def _headcount_by(visits: Iterable[VisitDTO], column: str, members) -> Dict[str, int]:
    df = visits_frame(visits)
    labels = [m.value for m in members]
    if df.empty:
        return {label: 0 for label in labels}
    totals = df.groupby(column)['group_size'].sum().reindex(labels, fill_value=0)
    return {label: int(total) for label, total in totals.items()}


def location_distribution(visits: Iterable[VisitDTO]) -> Dict[str, int]:
    """Headcount per location, every location present."""
    return _headcount_by(visits, 'location', LocationType)


def category_split(visits: Iterable[VisitDTO]) -> Dict[str, int]:
    """Headcount per visitor category, every category present."""
    return _headcount_by(visits, 'category', VisitorCategory)
