"""Usage counters persisted as a single JSON record.

The record is loaded once when the tracker is constructed and written back
after every mutation.  Persistence is best-effort: a missing, empty or
corrupt file yields default counters, and a failed write is logged while
the in-memory record stays authoritative.

Costs are estimates in USD, derived from the per-image price of the model
that was selected for the batch, and are kept rounded to three decimals.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import replace
from pathlib import Path

from thumbfast.core import catalog
from thumbfast.core.models import UsageStats, now_iso

logger = logging.getLogger(__name__)


def _round_cost(value: float) -> float:
    return catalog.round_half_up(value, 3)


class StatsTracker:
    """Accumulate image and request counts plus estimated cost."""

    def __init__(self, stats_file: Path) -> None:
        """Load the persisted record from *stats_file* (or start from zero).

        Args:
            stats_file: Path to the JSON record.
        """
        self.stats_file = Path(stats_file)
        self._lock = threading.Lock()
        self._stats = self._load()

    @property
    def stats(self) -> UsageStats:
        """Return a snapshot of the current counters."""
        with self._lock:
            return replace(self._stats)

    @staticmethod
    def cost_per_image(model_id: str | None) -> float:
        """Return the per-image cost of *model_id* (0 for unknown models)."""
        return catalog.cost_per_image(model_id)

    def track(self, image_count: int, model_id: str | None) -> UsageStats:
        """Record one completed generation.

        Args:
            image_count: Number of images the generation produced.
            model_id: Model the user selected for the generation.

        Returns:
            Snapshot of the updated counters.
        """
        image_count = max(int(image_count), 0)
        generation_cost = _round_cost(image_count * self.cost_per_image(model_id))

        with self._lock:
            current = self._stats
            self._stats = replace(
                current,
                total_images=current.total_images + image_count,
                total_requests=current.total_requests + 1,
                estimated_cost=_round_cost(current.estimated_cost + generation_cost),
                last_generation_cost=generation_cost,
            )
            self._save(self._stats)
            snapshot = replace(self._stats)

        logger.debug(
            "Tracked %d image(s) on %s, cost %.3f (total %.3f).",
            image_count,
            model_id,
            generation_cost,
            snapshot.estimated_cost,
        )
        return snapshot

    def reset(self) -> UsageStats:
        """Zero every counter and stamp a new reset time."""
        with self._lock:
            self._stats = UsageStats(last_reset=now_iso())
            self._save(self._stats)
            snapshot = replace(self._stats)
        logger.info("Usage stats reset.")
        return snapshot

    # ------------------------------------------------------------------
    # JSON persistence helpers.
    # ------------------------------------------------------------------

    def _load(self) -> UsageStats:
        """Read the record from disk, returning defaults on any failure."""
        if not self.stats_file.exists():
            return UsageStats()
        try:
            with open(self.stats_file, encoding="utf-8") as handle:
                raw = json.load(handle)
            if not isinstance(raw, dict):
                raise ValueError("stats record is not an object")
            return UsageStats.from_dict(raw)
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Ignoring unreadable stats file %s: %s", self.stats_file, e)
            return UsageStats()

    def _save(self, stats: UsageStats) -> None:
        """Write *stats* to disk; failures are logged, never raised."""
        try:
            self.stats_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.stats_file, "w", encoding="utf-8") as handle:
                json.dump(stats.to_dict(), handle, indent=2)
        except OSError as e:
            logger.warning("Could not persist stats to %s: %s", self.stats_file, e)
