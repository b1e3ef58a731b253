from typing import List, Optional, Protocol

from pydantic import BaseModel

from ..series import Granularity, SeriesRequest, TimeBucket


class SalesTotals(BaseModel):
    """Aggregate totals a store's series is generated from."""

    units: float = 0.0
    sales: float = 0.0


class StoredSeries(BaseModel):
    """A persisted generation: the request it came from and its buckets."""

    store_id: str
    granularity: Granularity
    request: SeriesRequest
    buckets: List[TimeBucket]
    generated_at: str


class SeriesStore(Protocol):
    """Persistence of generated series keyed by (store_id, granularity).

    `put` replaces whatever was stored under the key, it never merges.
    """

    def get(self, store_id: str, granularity: Granularity) -> Optional[StoredSeries]: ...

    def put(self, store_id: str, granularity: Granularity, request: SeriesRequest, buckets: List[TimeBucket]) -> StoredSeries: ...

    def delete(self, store_id: str) -> int: ...


class TotalsProvider(Protocol):
    """Protocol for sources of a store's aggregate sales totals."""

    def totals(self, store_id: str) -> SalesTotals: ...
