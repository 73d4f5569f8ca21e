"""Client-side game state records."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ...schemas.game import GameData, datetime_to_ms


@dataclass(frozen=True)
class PlayerState:
    """Snapshot of a player's game state. Replaced, never mutated."""
    balance: int = 0
    completed_missions: Tuple[str, ...] = ()
    prison_time: Optional[int] = None  # release moment, epoch ms
    cooldowns: Dict[str, int] = field(default_factory=dict)  # mission id -> end, epoch ms

    def to_wire(self) -> Dict[str, Any]:
        return {
            "balance": self.balance,
            "completedMissions": list(self.completed_missions),
            "prisonTime": self.prison_time,
            "cooldowns": dict(self.cooldowns),
        }

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "PlayerState":
        """Parse the server's game-data shape (prisonTime as epoch ms or ISO)."""
        parsed = GameData.model_validate(data)
        return cls(
            balance=parsed.balance,
            completed_missions=tuple(parsed.completed_missions),
            prison_time=datetime_to_ms(parsed.prison_time) if parsed.prison_time else None,
            cooldowns=dict(parsed.cooldowns),
        )


@dataclass
class MissionResult:
    """Outcome of one mission attempt."""
    success: bool
    reward: int
    message: str
    imprisoned: bool = False
