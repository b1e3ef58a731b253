"""Data layer package: series stores, totals providers, cache facade, and repository.

Public exports:
- SeriesStore, TotalsProvider protocols and their records
- JsonFileSeriesStore, SqlSeriesStore
- SyntheticProvider, RestProvider
- CacheFacade
- SeriesRepository
"""
from .base import SalesTotals, SeriesStore, StoredSeries, TotalsProvider
from .json_store import JsonFileSeriesStore
from .sql import SqlSeriesStore
from .synthetic import SyntheticProvider
from .rest import RestProvider
from .cache import CacheFacade
from .repository import SeriesRepository

__all__ = [
    "SalesTotals",
    "SeriesStore",
    "StoredSeries",
    "TotalsProvider",
    "JsonFileSeriesStore",
    "SqlSeriesStore",
    "SyntheticProvider",
    "RestProvider",
    "CacheFacade",
    "SeriesRepository",
]
