"""Per-bucket weight synthesis.

Each bucket weight is a random base magnitude times a heavy-tailed spread,
occasionally spiked or dipped, optionally shaped by the calendar weekday and
finally clamped into a safety band. The constants reproduce
the Seller Central dashboard look.
"""
import datetime as dt
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

Rng = Callable[[], float]


@dataclass(frozen=True)
class WeightProfile:
    name: str
    base_min: float
    base_span: float
    tail_power: float
    spread_min: float
    spread_span: float
    spike_threshold: float          # spike when draw > threshold
    spike_base: float
    spike_span: float
    dip_threshold: float
    dip_factor: float
    dip_when_above: bool            # daily dips on high draws, hourly on low ones
    collapse_threshold: float = 0.0  # 0 disables the collapse branch
    collapse_factor: float = 1.0
    near_zero_probability: float = 0.0
    near_zero_factor: float = 1.0
    weekend_factor: float = 1.0
    midweek_factor: float = 1.0
    floor: float = 0.002
    ceiling: float = 40.0


HOURLY_PROFILE = WeightProfile(
    name="hourly",
    base_min=0.05,
    base_span=2.5,
    tail_power=2.2,
    spread_min=0.1,
    spread_span=18.0,
    spike_threshold=0.88,
    spike_base=6.0,
    spike_span=8.0,
    dip_threshold=0.12,
    dip_factor=0.12,
    dip_when_above=False,
    floor=0.002,
    ceiling=40.0,
)

DAILY_PROFILE = WeightProfile(
    name="daily",
    base_min=0.02,
    base_span=6.5,
    tail_power=2.1,
    spread_min=0.05,
    spread_span=24.0,
    spike_threshold=0.90,
    spike_base=8.0,
    spike_span=10.0,
    dip_threshold=0.85,
    dip_factor=0.25,
    dip_when_above=True,
    collapse_threshold=0.08,
    collapse_factor=0.04,
    near_zero_probability=0.10,
    near_zero_factor=0.01,
    weekend_factor=0.9,
    midweek_factor=1.2,
    floor=0.001,
    ceiling=35.0,
)


def weekday_factor(day: dt.date, profile: WeightProfile) -> float:
    wd = day.weekday()  # Monday == 0
    if wd >= 5:
        return profile.weekend_factor
    if wd in (1, 2):
        return profile.midweek_factor
    return 1.0


def bucket_weight(rng: Rng, profile: WeightProfile, day: Optional[dt.date] = None) -> float:
    # Always five draws per bucket so every stream advances in lockstep.
    r1, r2, r3, r4, r5 = rng(), rng(), rng(), rng(), rng()

    base = profile.base_min + r1 * profile.base_span
    spread = profile.spread_min + (r2 ** profile.tail_power) * profile.spread_span
    weight = base * spread

    if r3 > profile.spike_threshold:
        weight *= profile.spike_base + r3 * profile.spike_span
    else:
        if r3 < profile.collapse_threshold:
            weight *= profile.collapse_factor
        dipped = r4 > profile.dip_threshold if profile.dip_when_above else r4 < profile.dip_threshold
        if dipped:
            weight *= profile.dip_factor
        if r5 < profile.near_zero_probability:
            weight *= profile.near_zero_factor

    if day is not None:
        weight *= weekday_factor(day, profile)

    return max(profile.floor, min(profile.ceiling, weight))


def build_weights(
    bucket_count: int,
    rng: Rng,
    profile: WeightProfile = HOURLY_PROFILE,
    dates: Optional[Sequence[dt.date]] = None,
) -> List[float]:
    """Return `bucket_count` strictly positive, bounded weights.

    When `dates` is given it must have one entry per bucket and drives the
    weekday seasonality of the profile.
    """
    if bucket_count <= 0:
        return []
    if dates is not None and len(dates) != bucket_count:
        raise ValueError("dates must have one entry per bucket")
    return [
        bucket_weight(rng, profile, dates[i] if dates is not None else None)
        for i in range(bucket_count)
    ]


def jitter(weights: Sequence[float], rng: Rng, low: float = 0.2, span: float = 3.0) -> List[float]:
    """Re-weight every bucket by an independent factor in [low, low + span)."""
    return [w * (low + rng() * span) for w in weights]
