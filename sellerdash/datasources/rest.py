import logging

import requests

from ..config import Settings, get_settings
from .base import SalesTotals
from .synthetic import SyntheticProvider

logger = logging.getLogger(__name__)


class RestProvider:
    """Reads a store's sales snapshot from the storefront REST API."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def _endpoint(self, store_id: str) -> str:
        base = (self.settings.api_base_url or "").rstrip("/")
        if not base:
            return ""
        return f"{base}/api/sales/snapshot/{store_id}"

    def totals(self, store_id: str) -> SalesTotals:
        url = self._endpoint(store_id)
        if not url:
            return SyntheticProvider(self.settings).totals(store_id)

        resp = requests.get(url, timeout=30)
        resp.raise_for_status()
        body = resp.json()
        snapshot = body.get("data", body) if isinstance(body, dict) else {}
        if not snapshot:
            logger.warning("Empty sales snapshot for store %s, using defaults", store_id)
            return SyntheticProvider(self.settings).totals(store_id)

        return SalesTotals(
            units=snapshot.get("units_ordered") or 0,
            sales=snapshot.get("ordered_product_sales") or 0,
        )
