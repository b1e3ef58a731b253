"""Period-over-period views for the dashboard summary cards.

A 365-day daily series is generated from the store totals and each view is
cut from it: hourly curves for a single day, Mon..Sun for the current week,
day-of-month for the current month, each next to its comparison periods.
"""
import datetime as dt
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from .axis import WEEKDAY_LABELS, month_day_labels
from .builder import generate_series, month_bounds, week_start
from .models import Granularity, SeriesRequest, TimeBucket

DIMENSIONS = ("today", "yesterday", "week", "month")
BASE_DAYS = 365


class CompareColumn(BaseModel):
    key: str
    label: str
    lines: List[str]


class CompareSeries(BaseModel):
    key: str
    label: str
    data: List[TimeBucket]


class CompareView(BaseModel):
    dimension: str
    data: List[TimeBucket]
    columns: List[CompareColumn] = Field(default_factory=list)
    series: List[CompareSeries] = Field(default_factory=list)


def format_units_line(value: float) -> str:
    return f"{int(round(value)):,} Units"


def format_sales_line(value: float) -> str:
    return f"${value:,.2f}"


def same_day_last_year(day: dt.date) -> dt.date:
    try:
        return day.replace(year=day.year - 1)
    except ValueError:  # Feb 29
        return day.replace(year=day.year - 1, day=28)


def _totals(buckets: Sequence[TimeBucket]) -> Dict[str, int]:
    return {"units": sum(b.units for b in buckets), "sales": sum(b.sales for b in buckets)}


def _column(key: str, label: str, buckets: Sequence[TimeBucket], end_of_day: bool = False) -> CompareColumn:
    t = _totals(buckets)
    lines = [format_units_line(t["units"]), format_sales_line(t["sales"])]
    if end_of_day:
        lines.insert(0, "By end of day")
    return CompareColumn(key=key, label=label, lines=lines)


class _DailyBase:
    """Daily records of the trailing year, looked up by date."""

    def __init__(self, store_id: str, total_units: float, total_sales: float, today: dt.date) -> None:
        self.store_id = store_id
        self.today = today
        buckets = generate_series(SeriesRequest(
            store_id=store_id,
            total_units=total_units,
            total_sales=total_sales,
            granularity=Granularity.DAY,
            range_start=today - dt.timedelta(days=BASE_DAYS - 1),
            range_end=today,
        ))
        self.by_date: Dict[str, TimeBucket] = {b.date: b for b in buckets}

    def record(self, day: dt.date) -> TimeBucket:
        iso = day.isoformat()
        return self.by_date.get(iso) or TimeBucket(index=0, date=iso)

    def hourly(self, day: dt.date, units: int, sales: int) -> List[TimeBucket]:
        return generate_series(SeriesRequest(
            store_id=self.store_id,
            total_units=units,
            total_sales=sales,
            granularity=Granularity.HOUR,
            range_start=day,
            range_end=day,
        ))

    def day_bucket(self, index: int, label: str, day: dt.date, future: bool = False) -> TimeBucket:
        rec = self.record(day)
        if future:
            return TimeBucket(index=index, label=label, date=rec.date)
        return rec.model_copy(update={"index": index, "label": label})

    def last_year_bucket(self, index: int, label: str, day: dt.date, future: bool = False) -> TimeBucket:
        rec = self.record(day)
        iso = same_day_last_year(day).isoformat()
        if future:
            return TimeBucket(index=index, label=label, date=iso)
        return TimeBucket(index=index, label=label, date=iso, units=rec.last_year_units, sales=rec.last_year_sales)


def _overlay(current: Sequence[TimeBucket], last_year: Sequence[TimeBucket]) -> List[TimeBucket]:
    return [
        cur.model_copy(update={"last_year_units": ly.units, "last_year_sales": ly.sales})
        for cur, ly in zip(current, last_year)
    ]


def _day_view(base: _DailyBase, anchor: dt.date, current_hour: int, is_today: bool) -> CompareView:
    rec = base.record(anchor)
    current = base.hourly(anchor, rec.units, rec.sales)
    ly_day = same_day_last_year(anchor)
    last_year = base.hourly(ly_day, rec.last_year_units, rec.last_year_sales)

    prev_day = anchor - dt.timedelta(days=1)
    prev = base.record(prev_day)
    previous = base.hourly(prev_day, prev.units, prev.sales)

    week_day = anchor - dt.timedelta(days=7)
    wk = base.record(week_day)
    last_week = base.hourly(week_day, wk.units, wk.sales)

    if is_today:
        so_far = [b for b in current if b.hour is not None and b.hour <= current_hour]
        first = _column("current", "Today so far", so_far)
        prev_key, prev_label = "yesterday", "Yesterday"
    else:
        first = _column("current", "Yesterday", current, end_of_day=True)
        prev_key, prev_label = "dayBeforeYesterday", "Day before yesterday"

    return CompareView(
        dimension="today" if is_today else "yesterday",
        data=_overlay(current, last_year),
        columns=[
            first,
            _column(prev_key, prev_label, previous, end_of_day=True),
            _column("sameDayLastWeek", "Same day last week", last_week, end_of_day=True),
            _column("sameDayLastYear", "Same day last year", last_year, end_of_day=True),
        ],
        series=[
            CompareSeries(key=prev_key, label=prev_label, data=previous),
            CompareSeries(key="sameDayLastWeek", label="Same day last week", data=last_week),
            CompareSeries(key="sameDayLastYear", label="Same day last year", data=last_year),
        ],
    )


def _week_view(base: _DailyBase) -> CompareView:
    start = week_start(base.today)
    days = [start + dt.timedelta(days=i) for i in range(7)]
    current = [base.day_bucket(i, WEEKDAY_LABELS[i], d, d > base.today) for i, d in enumerate(days)]
    last_week = [base.day_bucket(i, WEEKDAY_LABELS[i], d - dt.timedelta(days=7)) for i, d in enumerate(days)]
    last_year = [base.last_year_bucket(i, WEEKDAY_LABELS[i], d, d > base.today) for i, d in enumerate(days)]
    return CompareView(
        dimension="week",
        data=_overlay(current, last_year),
        columns=[
            _column("current", "This week so far", current),
            _column("lastWeek", "Last week", last_week),
            _column("sameWeekLastYear", "Same week last year", last_year),
        ],
        series=[
            CompareSeries(key="lastWeek", label="Last week", data=last_week),
            CompareSeries(key="sameWeekLastYear", label="Same week last year", data=last_year),
        ],
    )


def _month_view(base: _DailyBase) -> CompareView:
    first, last = month_bounds(base.today)
    days = [first + dt.timedelta(days=i) for i in range((last - first).days + 1)]
    labels = month_day_labels(days)
    current = [base.day_bucket(i, labels[i], d, d > base.today) for i, d in enumerate(days)]
    last_year = [base.last_year_bucket(i, labels[i], d, d > base.today) for i, d in enumerate(days)]

    prev_first, prev_last = month_bounds(first - dt.timedelta(days=1))
    prev_days = [prev_first + dt.timedelta(days=i) for i in range((prev_last - prev_first).days + 1)]
    prev_labels = month_day_labels(prev_days)
    last_month = [base.day_bucket(i, prev_labels[i], d) for i, d in enumerate(prev_days)]

    return CompareView(
        dimension="month",
        data=_overlay(current, last_year),
        columns=[
            _column("current", "This month so far", current),
            _column("lastMonth", "Last month", last_month),
            _column("sameMonthLastYear", "Same month last year", last_year),
        ],
        series=[
            CompareSeries(key="lastMonth", label="Last month", data=last_month),
            CompareSeries(key="sameMonthLastYear", label="Same month last year", data=last_year),
        ],
    )


def build_compare_view(
    store_id: str,
    dimension: str,
    total_units: float,
    total_sales: float,
    today: dt.date,
    current_hour: Optional[int] = None,
) -> CompareView:
    if dimension not in DIMENSIONS:
        raise ValueError(f"unknown dimension {dimension!r}, expected one of {', '.join(DIMENSIONS)}")
    base = _DailyBase(store_id, total_units, total_sales, today)
    hour = 23 if current_hour is None else max(0, min(23, int(current_hour)))
    if dimension == "today":
        return _day_view(base, today, hour, is_today=True)
    if dimension == "yesterday":
        return _day_view(base, today - dt.timedelta(days=1), hour, is_today=False)
    if dimension == "week":
        return _week_view(base)
    return _month_view(base)
