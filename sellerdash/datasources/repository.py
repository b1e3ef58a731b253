from __future__ import annotations

import datetime as dt
import logging
from typing import Callable, List, Optional

from flask_caching import Cache

from ..config import Settings, get_settings
from ..series import Granularity, SeriesRequest, build_compare_view, generate_series, trailing_window
from ..series.builder import week_start
from ..series.compare import CompareView
from .base import SalesTotals, SeriesStore, StoredSeries, TotalsProvider
from .cache import CacheFacade
from .json_store import JsonFileSeriesStore
from .rest import RestProvider
from .sql import SqlSeriesStore
from .synthetic import SyntheticProvider

logger = logging.getLogger(__name__)


class SeriesRepository:
    """High-level series access: totals lookup, generation, persistence and caching.

    The generator is pure, so a stored series is reused as long as the request
    it came from is unchanged; any change in totals or range regenerates it and
    replaces the stored entry for (store_id, granularity).
    """

    def __init__(
        self,
        store: Optional[SeriesStore] = None,
        totals_provider: Optional[TotalsProvider] = None,
        cache_facade: Optional[CacheFacade] = None,
        settings: Optional[Settings] = None,
        today: Optional[Callable[[], dt.date]] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store or self._default_store()
        self.totals_provider = totals_provider or self._default_totals()
        self.cache_facade = cache_facade or CacheFacade(cache=None, timeout_seconds=self.settings.cache_timeout_seconds)
        self.today = today or dt.date.today

    # ---- Backend selection ----
    def _default_store(self) -> SeriesStore:
        if self.settings.series_store == "SQL":
            return SqlSeriesStore(self.settings)
        return JsonFileSeriesStore(self.settings.data_dir)

    def _default_totals(self) -> TotalsProvider:
        if self.settings.totals_source == "REST":
            return RestProvider(self.settings)
        return SyntheticProvider(self.settings)

    # ---- Requests ----
    def default_range(self, granularity: Granularity) -> tuple[dt.date, dt.date]:
        today = self.today()
        g = Granularity(granularity)
        if g == Granularity.HOUR:
            return today, today
        if g == Granularity.WEEK:
            return week_start(today), today
        return trailing_window(today, self.settings.trailing_months)

    def build_request(
        self,
        store_id: str,
        granularity: Granularity = Granularity.MONTH,
        start: Optional[dt.date] = None,
        end: Optional[dt.date] = None,
        totals: Optional[SalesTotals] = None,
    ) -> SeriesRequest:
        """Request for a store, filling in upstream totals and the default range.

        Raises pydantic.ValidationError for an inverted range and ValueError
        for a range longer than MAX_RANGE_DAYS.
        """
        g = Granularity(granularity)
        if start is None or end is None:
            start, end = self.default_range(g)
        totals = totals or self.totals_provider.totals(store_id)
        request = SeriesRequest(
            store_id=store_id,
            total_units=totals.units,
            total_sales=totals.sales,
            granularity=g,
            range_start=start,
            range_end=end,
        )
        if request.span_days > self.settings.max_range_days:
            raise ValueError(f"range of {request.span_days} days exceeds the {self.settings.max_range_days}-day limit")
        return request

    # ---- Loaders ----
    def load_uncached(self, request: SeriesRequest) -> StoredSeries:
        stored = self.store.get(request.store_id, request.granularity)
        if stored is not None and stored.request == request:
            return stored
        return self._generate_and_store(request)

    def load_cached(self, request: SeriesRequest) -> StoredSeries:
        @self.cache_facade.memoize
        def _inner(_k: str) -> StoredSeries:  # pragma: no cover - thin wrapper
            return self.load_uncached(request)

        version = self.cache_facade.version(request.store_id)
        return _inner(f"{version}|{request.model_dump_json()}")

    def get_series(
        self,
        store_id: str,
        granularity: Granularity = Granularity.MONTH,
        start: Optional[dt.date] = None,
        end: Optional[dt.date] = None,
    ) -> StoredSeries:
        return self.load_cached(self.build_request(store_id, granularity, start, end))

    def get_stored(self, store_id: str, granularity: Granularity) -> Optional[StoredSeries]:
        return self.store.get(store_id, granularity)

    def regenerate(self, store_id: str, granularities: Optional[List[Granularity]] = None) -> List[StoredSeries]:
        """Regenerate the default-range series of a store from fresh totals."""
        totals = self.totals_provider.totals(store_id)
        out = []
        for g in granularities or list(Granularity):
            out.append(self._generate_and_store(self.build_request(store_id, g, totals=totals)))
        self.cache_facade.bump(store_id)
        return out

    def forget(self, store_id: str) -> int:
        removed = self.store.delete(store_id)
        self.cache_facade.bump(store_id)
        logger.info("Removed %d stored series for store %s", removed, store_id)
        return removed

    def compare_view(self, store_id: str, dimension: str, current_hour: Optional[int] = None) -> CompareView:
        totals = self.totals_provider.totals(store_id)
        return build_compare_view(store_id, dimension, totals.units, totals.sales, self.today(), current_hour)

    def _generate_and_store(self, request: SeriesRequest) -> StoredSeries:
        buckets = generate_series(request)
        logger.info(
            "Generated %d %s buckets for store %s (%s..%s)",
            len(buckets), request.granularity.value, request.store_id,
            request.range_start.isoformat(), request.range_end.isoformat(),
        )
        return self.store.put(request.store_id, request.granularity, request, buckets)

    # ---- Cache wiring ----
    def set_cache(self, cache: Cache) -> None:
        self.cache_facade = CacheFacade(cache, timeout_seconds=self.settings.cache_timeout_seconds)
