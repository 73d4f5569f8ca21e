"""Per-mission cooldown tracking.

Entries map a mission id to the epoch-ms moment its cooldown ends. Expired
entries are only removed by tick(); reads never prune. Between expiry and
the next tick an entry reports 0 ms remaining but still blocks the mission.
"""

from typing import Dict, List, Mapping


class CooldownTracker:
    """Mission id -> cooldown end (epoch ms)."""

    def __init__(self):
        self._ends: Dict[str, int] = {}

    def start(self, mission_id: str, ends_at: int) -> None:
        self._ends[mission_id] = ends_at

    def is_active(self, mission_id: str) -> bool:
        return mission_id in self._ends

    def remaining_ms(self, mission_id: str, now: int) -> int:
        ends_at = self._ends.get(mission_id)
        if ends_at is None:
            return 0
        return max(0, ends_at - now)

    def tick(self, now: int) -> List[str]:
        """Drop expired entries; returns the mission ids released."""
        expired = [mission_id for mission_id, ends_at in self._ends.items() if ends_at <= now]
        for mission_id in expired:
            del self._ends[mission_id]
        return expired

    def merge(self, cooldowns: Mapping[str, int], now: int) -> None:
        """Fold in a persisted snapshot, skipping expired entries.

        Keeps the later end per mission, so tracked entries are never shortened
        or dropped here.
        """
        for mission_id, ends_at in cooldowns.items():
            ends_at = int(ends_at)
            if ends_at > now and ends_at > self._ends.get(mission_id, ends_at - 1):
                self._ends[mission_id] = ends_at

    def snapshot(self) -> Dict[str, int]:
        return dict(self._ends)

    def __len__(self) -> int:
        return len(self._ends)
