"""Bucket labels, chart ticks and Y-axis scaling."""
import datetime as dt
import math
from typing import Dict, List, Sequence, Tuple

from .models import AxisConfig, Granularity, TimeBucket

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
WEEKDAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
MONTH_DAY_ANCHORS = (1, 8, 15, 22, 29)

# (default_max, default_interval) for units and sales per granularity
DEFAULT_Y_AXIS: Dict[Granularity, Dict[str, Tuple[int, int]]] = {
    Granularity.HOUR: {"units": (750, 250), "sales": (15000, 5000)},
    Granularity.DAY: {"units": (7500, 2500), "sales": (150000, 50000)},
    Granularity.WEEK: {"units": (30000, 10000), "sales": (600000, 200000)},
    Granularity.MONTH: {"units": (7500, 2500), "sales": (150000, 50000)},
}


def hour_label(hour: int) -> str:
    h = hour % 24
    suffix = "AM" if h < 12 else "PM"
    display = 12 if h % 12 == 0 else h % 12
    return f"{display}{suffix}"


def month_label(day: dt.date) -> str:
    return f"{MONTH_NAMES[day.month - 1]} '{day.year % 100:02d}"


def week_label(week_start: dt.date) -> str:
    return f"{MONTH_NAMES[week_start.month - 1]} {week_start.day}"


def month_anchor_labels(dates: Sequence[dt.date]) -> List[str]:
    """Label the first day of every month in a run of consecutive days.

    A range that never crosses a month start gets its first bucket labelled so
    the axis is never blank.
    """
    if not dates:
        return []
    ticks, names = month_ticks(dates[0], dates[-1])
    labels = [names.get(i, "") for i in range(len(dates))]
    if not ticks:
        labels[0] = month_label(dates[0])
    return labels


def month_day_labels(dates: Sequence[dt.date]) -> List[str]:
    return [str(d.day) if d.day in MONTH_DAY_ANCHORS else "" for d in dates]


def month_ticks(start: dt.date, end: dt.date) -> Tuple[List[int], Dict[int, str]]:
    """Tick indices (day offsets from `start`) at each month start within the range."""
    ticks: List[int] = []
    labels: Dict[int, str] = {}
    cursor = start if start.day == 1 else _next_month(start)
    while cursor <= end:
        idx = (cursor - start).days
        ticks.append(idx)
        labels[idx] = month_label(cursor)
        cursor = _next_month(cursor)
    return ticks, labels


def _next_month(day: dt.date) -> dt.date:
    if day.month == 12:
        return dt.date(day.year + 1, 1, 1)
    return dt.date(day.year, day.month + 1, 1)


def label_map(buckets: Sequence[TimeBucket]) -> Dict[int, str]:
    return {b.index: b.label for b in buckets}


def axis_ticks(buckets: Sequence[TimeBucket]) -> List[int]:
    return [b.index for b in buckets if b.label]


def calculate_y_axis_ticks(max_value: float, default_max: int, default_interval: int) -> AxisConfig:
    """Four evenly spaced ticks covering `max_value`.

    Values within the default ceiling use the default axis. Larger values get
    10% headroom split into three steps, each rounded up to a readable unit.
    """
    if max_value is None or not math.isfinite(max_value) or max_value <= default_max:
        return AxisConfig(
            ticks=[i * default_interval for i in range(4)],
            domain=(0, default_max),
        )

    target = math.ceil(max_value * 1.1)
    interval = math.ceil(target / 3)
    if interval <= 1000:
        nice = math.ceil(interval / 100) * 100
    elif interval <= 10000:
        nice = math.ceil(interval / 1000) * 1000
    else:
        nice = math.ceil(interval / 10000) * 10000

    return AxisConfig(ticks=[0, nice, nice * 2, nice * 3], domain=(0, nice * 3))


def compute_y_axis_config(max_units: float, max_sales: float, granularity: Granularity = Granularity.DAY) -> Dict[str, AxisConfig]:
    defaults = DEFAULT_Y_AXIS[Granularity(granularity)]
    return {
        "unitsConfig": calculate_y_axis_ticks(max_units, *defaults["units"]),
        "salesConfig": calculate_y_axis_ticks(max_sales, *defaults["sales"]),
    }


def series_maxima(buckets: Sequence[TimeBucket]) -> Tuple[int, int]:
    """Largest units / sales value across current and last-year fields."""
    max_units = max((max(b.units, b.last_year_units) for b in buckets), default=0)
    max_sales = max((max(b.sales, b.last_year_sales) for b in buckets), default=0)
    return max_units, max_sales
