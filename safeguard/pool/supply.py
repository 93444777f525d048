"""
Pool token supply history.

Signed swap data carries the balances a quote was priced against but not the
pool token supply. The pool records a snapshot every time its supply
changes so the supply a quote was issued against can be recovered from the
quote's start time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..constants import SUPPLY_HISTORY_SIZE


@dataclass(frozen=True)
class SupplySnapshot:
    timestamp: int
    total_supply: int


class SupplyHistory:
    """Bounded, time-ordered list of supply snapshots."""

    def __init__(self, max_snapshots: int = SUPPLY_HISTORY_SIZE):
        self.max_snapshots = max_snapshots
        self._snapshots: List[SupplySnapshot] = []

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def latest(self) -> Optional[SupplySnapshot]:
        return self._snapshots[-1] if self._snapshots else None

    def record(self, timestamp: int, total_supply: int) -> SupplySnapshot:
        snapshot = SupplySnapshot(timestamp, total_supply)
        # Same-second changes overwrite the previous snapshot
        if self._snapshots and self._snapshots[-1].timestamp >= timestamp:
            self._snapshots[-1] = SupplySnapshot(self._snapshots[-1].timestamp, total_supply)
            return self._snapshots[-1]
        self._snapshots.append(snapshot)
        if len(self._snapshots) > self.max_snapshots:
            self._snapshots = self._snapshots[-self.max_snapshots:]
        return snapshot

    def _find_snapshot_at(self, target_time: int) -> Optional[SupplySnapshot]:
        """Binary search for the snapshot at or just before target_time."""
        if not self._snapshots:
            return None
        if target_time <= self._snapshots[0].timestamp:
            return self._snapshots[0]

        lo, hi = 0, len(self._snapshots) - 1
        while lo < hi:
            mid = (lo + hi + 1) // 2
            if self._snapshots[mid].timestamp <= target_time:
                lo = mid
            else:
                hi = mid - 1
        return self._snapshots[lo]

    def supply_at(self, timestamp: int, current_supply: int) -> int:
        """Supply in effect at ``timestamp``; ``current_supply`` when nothing was recorded yet."""
        snapshot = self._find_snapshot_at(timestamp)
        if snapshot is None:
            return current_supply
        return snapshot.total_supply
