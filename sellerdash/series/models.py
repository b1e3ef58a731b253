import datetime as dt
import math
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Granularity(str, Enum):
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class SeriesRequest(BaseModel):
    """Input contract of the series generator.

    Totals are authoritative: the generated buckets reproduce them exactly after
    half-up rounding. Negative, missing or non-finite totals are read as zero.
    `seed` overrides the seed derived from the other fields (used by tests and
    by callers that need a fixed shape).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    store_id: str = Field(default="store", alias="storeId")
    total_units: float = Field(default=0.0, alias="totalUnits")
    total_sales: float = Field(default=0.0, alias="totalSales")
    granularity: Granularity = Granularity.DAY
    range_start: dt.date = Field(alias="rangeStart")
    range_end: dt.date = Field(alias="rangeEnd")
    seed: Optional[int] = None

    @field_validator("store_id", mode="before")
    @classmethod
    def _default_store(cls, v):
        s = str(v).strip() if v is not None else ""
        return s or "store"

    @field_validator("total_units", "total_sales", mode="before")
    @classmethod
    def _clamp_total(cls, v):
        try:
            value = float(v)
        except (TypeError, ValueError):
            return 0.0
        if not math.isfinite(value) or value < 0:
            return 0.0
        return value

    @field_validator("granularity", mode="before")
    @classmethod
    def _lower_granularity(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode="after")
    def _check_range(self):
        if self.range_end < self.range_start:
            raise ValueError("rangeEnd must not be before rangeStart")
        return self

    @property
    def span_days(self) -> int:
        return (self.range_end - self.range_start).days + 1


class TimeBucket(BaseModel):
    """One point of a generated series."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    index: int = Field(ge=0)
    label: str = ""
    date: str
    hour: Optional[int] = Field(default=None, ge=0, le=23)
    units: int = Field(default=0, ge=0)
    sales: int = Field(default=0, ge=0)
    last_year_units: int = Field(default=0, ge=0, alias="lastYearUnits")
    last_year_sales: int = Field(default=0, ge=0, alias="lastYearSales")


class AxisConfig(BaseModel):
    ticks: List[int]
    domain: Tuple[int, int]
