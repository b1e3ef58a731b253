"""Synthetic sales series generation.

Pure functions only: no I/O, no clock, no shared state. Everything the
dashboard charts need is derived from a SeriesRequest.

Public exports:
- SeriesRequest, TimeBucket, Granularity, AxisConfig
- generate_series, build_trailing_request, trailing_window, summarize
- allocate, build_weights, create_rng, hash_string
- calculate_y_axis_ticks, compute_y_axis_config
- build_compare_view
"""
from .allocation import allocate
from .axis import axis_ticks, calculate_y_axis_ticks, compute_y_axis_config, label_map, series_maxima
from .builder import build_trailing_request, generate_series, summarize, trailing_window
from .compare import CompareView, build_compare_view
from .models import AxisConfig, Granularity, SeriesRequest, TimeBucket
from .rng import create_rng, hash_string
from .weights import build_weights

__all__ = [
    "SeriesRequest",
    "TimeBucket",
    "Granularity",
    "AxisConfig",
    "generate_series",
    "build_trailing_request",
    "trailing_window",
    "summarize",
    "allocate",
    "build_weights",
    "create_rng",
    "hash_string",
    "axis_ticks",
    "label_map",
    "calculate_y_axis_ticks",
    "compute_y_axis_config",
    "series_maxima",
    "CompareView",
    "build_compare_view",
]
