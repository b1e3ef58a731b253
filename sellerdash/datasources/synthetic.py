from ..config import Settings, get_settings
from .base import SalesTotals


class SyntheticProvider:
    """Fixed demo totals for stores without an upstream sales snapshot."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def totals(self, store_id: str) -> SalesTotals:  # noqa: ARG002
        return SalesTotals(
            units=self.settings.default_total_units,
            sales=self.settings.default_total_sales,
        )
