"""
Application Configuration Model
Represents a validated configuration state
"""

from typing import Any, Dict

from ..analysis.range_filter import ChartRange


class AppConfig:
    """
    Immutable configuration object for the YouTube channel tracker.

    Represents a VALID configuration state only.
    All validation must be performed before instantiation.
    The API key lives here and nowhere else; changing it produces a new
    AppConfig that ConfigLoader.save() persists.
    """

    def __init__(
        self,
        api_key: str = "",
        storage_root: str = "./storage",
        display_range: ChartRange = ChartRange.ALL,
        tick_count: int = 7
    ):
        """
        Initialize AppConfig with validated values.

        Args:
            api_key: YouTube Data API key (may be empty until configured)
            storage_root: Root directory for storage (default: "./storage")
            display_range: Default recency window for history output
            tick_count: Number of axis ticks for charts (>= 2)
        """
        self._api_key = api_key
        self._storage_root = storage_root
        self._display_range = display_range
        self._tick_count = tick_count

    @property
    def api_key(self) -> str:
        """YouTube API key."""
        return self._api_key

    @property
    def storage_root(self) -> str:
        """Root directory for storage."""
        return self._storage_root

    @property
    def display_range(self) -> ChartRange:
        """Default recency window for history and delta output."""
        return self._display_range

    @property
    def tick_count(self) -> int:
        """Number of evenly spaced axis ticks."""
        return self._tick_count

    @property
    def is_api_key_valid(self) -> bool:
        """Format check only: Google API keys start with 'AIza' and are 39 chars."""
        return len(self._api_key) > 30 and self._api_key.startswith("AIza")

    def with_api_key(self, api_key: str) -> "AppConfig":
        return AppConfig(
            api_key=api_key,
            storage_root=self._storage_root,
            display_range=self._display_range,
            tick_count=self._tick_count
        )

    def to_dict(self) -> Dict[str, Any]:
        """YAML layout read back by ConfigLoader."""
        return {
            "api_key": self._api_key,
            "storage": {"root": self._storage_root},
            "display": {
                "range": self._display_range.value,
                "tick_count": self._tick_count,
            },
        }

    def __repr__(self) -> str:
        """String representation for debugging (never shows the key)."""
        return (
            f"AppConfig(api_key_set={bool(self.api_key)}, "
            f"storage_root={self.storage_root!r}, "
            f"display_range={self.display_range.value!r}, "
            f"tick_count={self.tick_count})"
        )
