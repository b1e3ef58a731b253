import datetime as dt
from typing import Optional

from flask_caching import Cache

from .config import get_settings
from .datasources import SeriesRepository, StoredSeries
from .series import Granularity
from .series.compare import CompareView

# Singleton repository instance for the module facade, initialized with settings
_repo = SeriesRepository(settings=get_settings())


def get_repository() -> SeriesRepository:
    return _repo


def set_cache(cache: Cache) -> None:
    """Wire the Flask-Caching instance into the series repository.

    Called once from the composition root.
    """
    _repo.set_cache(cache)


def get_series(
    store_id: str,
    granularity: Granularity = Granularity.MONTH,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
) -> StoredSeries:
    """Public series accessor used by the UI callbacks and the REST API."""
    return _repo.get_series(store_id, granularity, start, end)


def get_compare_view(store_id: str, dimension: str, current_hour: Optional[int] = None) -> CompareView:
    return _repo.compare_view(store_id, dimension, current_hour)
