from __future__ import annotations

import datetime as dt
import json
import logging
import os
import tempfile
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from filelock import FileLock

from ..series import Granularity, SeriesRequest, TimeBucket
from .base import StoredSeries

logger = logging.getLogger(__name__)

CHART_DATA_FILE = "chart_data.json"

_locks: Dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.Lock()
        return lock


class JsonFileSeriesStore:
    """Keeps every store's series in one JSON array file.

    Read-modify-write cycles on the same file are serialized by a per-path
    thread lock plus an OS lock on a `.lock` sidecar file, and the file is
    replaced atomically, so concurrent writers never lose an update whether
    they share a process or run in separate workers.
    """

    def __init__(self, data_dir: Path | str, filename: str = CHART_DATA_FILE) -> None:
        self.path = Path(data_dir) / filename
        self._lock = _lock_for(self.path)
        self._file_lock = FileLock(str(self.path) + ".lock")

    @contextmanager
    def _locked(self) -> Iterator[None]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock, self._file_lock:
            yield

    # ---- Raw file access ----
    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError:
            logger.warning("Unreadable series file %s, treating as empty", self.path)
            return []
        return data if isinstance(data, list) else []

    def _write(self, records: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".chart_data.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(records, fh, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("Wrote %d series records to %s", len(records), self.path)

    # ---- SeriesStore ----
    def get(self, store_id: str, granularity: Granularity) -> Optional[StoredSeries]:
        g = Granularity(granularity).value
        with self._locked():
            records = self._read()
        for rec in records:
            if rec.get("store_id") == store_id and rec.get("granularity") == g:
                return StoredSeries.model_validate(rec)
        return None

    def put(self, store_id: str, granularity: Granularity, request: SeriesRequest, buckets: List[TimeBucket]) -> StoredSeries:
        g = Granularity(granularity)
        stored = StoredSeries(
            store_id=store_id,
            granularity=g,
            request=request,
            buckets=list(buckets),
            generated_at=dt.datetime.now(dt.timezone.utc).isoformat(),
        )
        record = {"id": str(uuid.uuid4()), **stored.model_dump(mode="json")}
        with self._locked():
            records = [
                r for r in self._read()
                if not (r.get("store_id") == store_id and r.get("granularity") == g.value)
            ]
            records.append(record)
            self._write(records)
        return stored

    def delete(self, store_id: str) -> int:
        with self._locked():
            records = self._read()
            kept = [r for r in records if r.get("store_id") != store_id]
            removed = len(records) - len(kept)
            if removed:
                self._write(kept)
        return removed
