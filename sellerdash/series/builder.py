"""Turn a SeriesRequest into an ordered list of TimeBuckets.

Units and sales are allocated from two independently seeded weight vectors.
The last-year comparison is not derived from the current buckets: it is a
separate series with its own seeds, a scaled-down total and re-jittered
weights, so the two chart lines never run parallel.
"""
import datetime as dt
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .allocation import allocate, round_half_up
from .axis import WEEKDAY_LABELS, hour_label, month_anchor_labels, month_day_labels, week_label
from .models import Granularity, SeriesRequest, TimeBucket
from .rng import (
    LAST_YEAR_SALES_STREAM,
    LAST_YEAR_UNITS_STREAM,
    MASK32,
    SALES_STREAM,
    UNITS_STREAM,
    create_rng,
    derive_seed,
    offset_seed,
)
from .weights import DAILY_PROFILE, HOURLY_PROFILE, WeightProfile, build_weights, jitter

LAST_YEAR_UNITS_SCALE = (0.45, 0.90)
LAST_YEAR_SALES_SCALE = (0.40, 0.90)
TRAILING_MONTHS = 13


@dataclass(frozen=True)
class BucketLayout:
    """Calendar positions of a series before any values are assigned."""

    dates: List[dt.date]
    labels: List[str]
    active: List[bool]              # inactive buckets are padding and stay at zero
    profile: WeightProfile
    seasonal: bool
    hours: Optional[List[int]] = None

    def __len__(self) -> int:
        return len(self.dates)


def _days(start: dt.date, end: dt.date) -> List[dt.date]:
    return [start + dt.timedelta(days=i) for i in range((end - start).days + 1)]


def week_start(day: dt.date) -> dt.date:
    return day - dt.timedelta(days=day.weekday())


def month_bounds(day: dt.date) -> Tuple[dt.date, dt.date]:
    first = day.replace(day=1)
    nxt = dt.date(first.year + 1, 1, 1) if first.month == 12 else dt.date(first.year, first.month + 1, 1)
    return first, nxt - dt.timedelta(days=1)


def _daily_layout(start: dt.date, end: dt.date) -> BucketLayout:
    dates = _days(start, end)
    return BucketLayout(
        dates=dates,
        labels=month_anchor_labels(dates),
        active=[True] * len(dates),
        profile=DAILY_PROFILE,
        seasonal=True,
    )


def _padded_layout(first: dt.date, last: dt.date, request: SeriesRequest, labels: Sequence[str]) -> BucketLayout:
    dates = _days(first, last)
    return BucketLayout(
        dates=dates,
        labels=list(labels),
        active=[request.range_start <= d <= request.range_end for d in dates],
        profile=DAILY_PROFILE,
        seasonal=True,
    )


def bucket_layout(request: SeriesRequest) -> BucketLayout:
    start, end = request.range_start, request.range_end

    if request.granularity == Granularity.HOUR:
        hours = list(range(24))
        return BucketLayout(
            dates=[start] * 24,
            labels=[hour_label(h) for h in hours],
            active=[True] * 24,
            profile=HOURLY_PROFILE,
            seasonal=False,
            hours=hours,
        )

    if request.granularity == Granularity.WEEK:
        first_week, last_week = week_start(start), week_start(end)
        if first_week == last_week:
            return _padded_layout(first_week, first_week + dt.timedelta(days=6), request, WEEKDAY_LABELS)
        weeks = [first_week + dt.timedelta(weeks=i) for i in range((last_week - first_week).days // 7 + 1)]
        return BucketLayout(
            dates=weeks,
            labels=[week_label(w) for w in weeks],
            active=[True] * len(weeks),
            profile=DAILY_PROFILE,
            seasonal=False,
        )

    if request.granularity == Granularity.MONTH:
        first, last = month_bounds(start)
        if end <= last:
            days = _days(first, last)
            return _padded_layout(first, last, request, month_day_labels(days))
        return _daily_layout(start, end)

    return _daily_layout(start, end)


def request_seed(request: SeriesRequest) -> int:
    if request.seed is not None:
        return request.seed & MASK32
    return derive_seed(
        request.store_id,
        request.granularity.value,
        request.range_start.isoformat(),
        request.range_end.isoformat(),
        repr(request.total_units),
        repr(request.total_sales),
    )


def _active_weights(layout: BucketLayout, rng) -> Tuple[List[int], List[float]]:
    idx = [i for i, on in enumerate(layout.active) if on]
    dates = [layout.dates[i] for i in idx] if layout.seasonal else None
    return idx, build_weights(len(idx), rng, layout.profile, dates)


def _scatter(n: int, idx: Sequence[int], values: Sequence[int]) -> List[int]:
    out = [0] * n
    for i, v in zip(idx, values):
        out[i] = v
    return out


def _current_stream(total: int, layout: BucketLayout, seed: int, stream: int) -> List[int]:
    rng = create_rng(offset_seed(seed, stream))
    idx, weights = _active_weights(layout, rng)
    return _scatter(len(layout), idx, allocate(total, weights))


def _comparison_stream(total: int, layout: BucketLayout, seed: int, stream: int, band: Tuple[float, float]) -> List[int]:
    rng = create_rng(offset_seed(seed, stream))
    scale = rng.uniform(*band)
    idx, weights = _active_weights(layout, rng)
    shares = allocate(round_half_up(total * scale), jitter(weights, rng))
    return _scatter(len(layout), idx, shares)


def generate_series(request: SeriesRequest) -> List[TimeBucket]:
    """Generate the bucketed series for `request`.

    Pure and deterministic: the same request (and seed) always gives the same
    list. `sum(units) == round(total_units)` and likewise for sales.
    """
    layout = bucket_layout(request)
    seed = request_seed(request)
    units_total = round_half_up(request.total_units)
    sales_total = round_half_up(request.total_sales)

    units = _current_stream(units_total, layout, seed, UNITS_STREAM)
    sales = _current_stream(sales_total, layout, seed, SALES_STREAM)
    ly_units = _comparison_stream(units_total, layout, seed, LAST_YEAR_UNITS_STREAM, LAST_YEAR_UNITS_SCALE)
    ly_sales = _comparison_stream(sales_total, layout, seed, LAST_YEAR_SALES_STREAM, LAST_YEAR_SALES_SCALE)

    return [
        TimeBucket(
            index=i,
            label=layout.labels[i],
            date=layout.dates[i].isoformat(),
            hour=layout.hours[i] if layout.hours is not None else None,
            units=units[i],
            sales=sales[i],
            last_year_units=ly_units[i],
            last_year_sales=ly_sales[i],
        )
        for i in range(len(layout))
    ]


def trailing_window(today: dt.date, months: int = TRAILING_MONTHS) -> Tuple[dt.date, dt.date]:
    """First day of the month `months - 1` months back, through `today`."""
    back = max(1, months) - 1
    year, month = divmod(today.year * 12 + (today.month - 1) - back, 12)
    return dt.date(year, month + 1, 1), today


def build_trailing_request(
    store_id: str,
    total_units: float,
    total_sales: float,
    today: dt.date,
    months: int = TRAILING_MONTHS,
) -> SeriesRequest:
    start, end = trailing_window(today, months)
    return SeriesRequest(
        store_id=store_id,
        total_units=total_units,
        total_sales=total_sales,
        granularity=Granularity.MONTH,
        range_start=start,
        range_end=end,
    )


def summarize(buckets: Sequence[TimeBucket]) -> Dict[str, int]:
    return {
        "units": sum(b.units for b in buckets),
        "sales": sum(b.sales for b in buckets),
        "lastYearUnits": sum(b.last_year_units for b in buckets),
        "lastYearSales": sum(b.last_year_sales for b in buckets),
    }
