import datetime as dt
from typing import Optional, Sequence

import pandas as pd

from .series import TimeBucket

BUCKET_COLUMNS = ["index", "label", "date", "hour", "units", "sales", "lastYearUnits", "lastYearSales"]


def parse_date(value: Optional[str]) -> Optional[dt.date]:
    """Parse `YYYY-MM-DD` (or an ISO datetime) into a date; blank gives None."""
    if value is None or str(value).strip() == "":
        return None
    return pd.to_datetime(str(value).strip()).date()


def fmt_money(x: float) -> str:
    """Compact human-readable money formatting (e.g., 12.3K, 7M)."""
    for unit in ["", "K", "M", "B"]:
        if abs(x) < 1000.0:
            return f"{x:,.0f}{unit}"
        x /= 1000.0
    return f"{x:,.0f}T"


def fmt_tick(v: float) -> str:
    """Axis tick text: 2500 -> 2.5k, 150000 -> 150k."""
    if v == 0:
        return "0"
    if v >= 1000:
        return f"{v / 1000:g}k"
    return f"{v:g}"


def buckets_to_frame(buckets: Sequence[TimeBucket]) -> pd.DataFrame:
    """Series as a DataFrame with the wire (camelCase) column names."""
    rows = [b.model_dump(by_alias=True) for b in buckets]
    return pd.DataFrame(rows, columns=BUCKET_COLUMNS)
