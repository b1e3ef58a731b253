import datetime as dt
import json
import logging
from typing import List, Optional

from sqlalchemy import Column, DateTime, MetaData, String, Table, Text, create_engine, delete, insert, select
from sqlalchemy.engine import Engine

from ..config import Settings, get_settings
from ..series import Granularity, SeriesRequest, TimeBucket
from .base import StoredSeries

logger = logging.getLogger(__name__)

metadata = MetaData()

sales_time_series = Table(
    "sales_time_series",
    metadata,
    Column("store_id", String(128), primary_key=True),
    Column("granularity", String(16), primary_key=True),
    Column("request", Text, nullable=False),
    Column("buckets", Text, nullable=False),
    Column("generated_at", DateTime(timezone=True), nullable=False),
)


def _as_utc(value: dt.datetime) -> dt.datetime:
    # SQLite hands back the stored UTC wall time without tzinfo
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


class SqlSeriesStore:
    """Series persistence in a SQL database defined by DB_URL setting."""

    def __init__(self, settings: Settings | None = None, engine: Optional[Engine] = None) -> None:
        self.settings = settings or get_settings()
        if engine is None:
            if not self.settings.db_url:
                raise ValueError("DB_URL must be set when SERIES_STORE=SQL")
            engine = create_engine(self.settings.db_url, pool_pre_ping=True)
        self.engine = engine
        metadata.create_all(self.engine)

    def get(self, store_id: str, granularity: Granularity) -> Optional[StoredSeries]:
        g = Granularity(granularity)
        stmt = select(sales_time_series).where(
            sales_time_series.c.store_id == store_id,
            sales_time_series.c.granularity == g.value,
        )
        with self.engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        if row is None:
            return None
        return StoredSeries(
            store_id=row["store_id"],
            granularity=g,
            request=SeriesRequest.model_validate_json(row["request"]),
            buckets=[TimeBucket.model_validate(b) for b in json.loads(row["buckets"])],
            generated_at=_as_utc(row["generated_at"]).isoformat(),
        )

    def put(self, store_id: str, granularity: Granularity, request: SeriesRequest, buckets: List[TimeBucket]) -> StoredSeries:
        g = Granularity(granularity)
        now = dt.datetime.now(dt.timezone.utc)
        payload = json.dumps([b.model_dump(mode="json") for b in buckets])
        # Replace in one transaction: delete-then-insert under the same key.
        with self.engine.begin() as conn:
            conn.execute(delete(sales_time_series).where(
                sales_time_series.c.store_id == store_id,
                sales_time_series.c.granularity == g.value,
            ))
            conn.execute(insert(sales_time_series).values(
                store_id=store_id,
                granularity=g.value,
                request=request.model_dump_json(),
                buckets=payload,
                generated_at=now,
            ))
        logger.debug("Stored %d buckets for %s/%s", len(buckets), store_id, g.value)
        return StoredSeries(
            store_id=store_id,
            granularity=g,
            request=request,
            buckets=list(buckets),
            generated_at=now.isoformat(),
        )

    def delete(self, store_id: str) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(delete(sales_time_series).where(sales_time_series.c.store_id == store_id))
        return result.rowcount or 0
