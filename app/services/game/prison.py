"""Prison lockout state machine.

FREE -> IMPRISONED only through imprison() (a failed mission) or by
adopting a persisted sentence that has not yet elapsed. IMPRISONED -> FREE
happens only in check_release() once the wall clock reaches the release
moment.
"""

from enum import Enum
from typing import Optional


class PrisonStatus(Enum):
    FREE = "free"
    IMPRISONED = "imprisoned"


class PrisonStateMachine:
    """Tracks whether the player is locked out and until when (epoch ms)."""

    def __init__(self):
        self.release_at: Optional[int] = None

    @property
    def status(self) -> PrisonStatus:
        return PrisonStatus.FREE if self.release_at is None else PrisonStatus.IMPRISONED

    @property
    def is_imprisoned(self) -> bool:
        return self.release_at is not None

    def imprison(self, release_at: int) -> None:
        self.release_at = release_at

    def sync(self, prison_time: Optional[int], now: int) -> PrisonStatus:
        """Adopt a persisted sentence that has not elapsed yet.

        Only extends: an active local sentence is kept when the persisted one
        is missing, elapsed or earlier.
        """
        if prison_time is not None and prison_time > now:
            if self.release_at is None or prison_time > self.release_at:
                self.release_at = prison_time
        return self.status

    def remaining_ms(self, now: int) -> int:
        if self.release_at is None:
            return 0
        return max(0, self.release_at - now)

    def check_release(self, now: int) -> bool:
        """Release if the sentence has elapsed. True only on the transition."""
        if self.release_at is not None and now >= self.release_at:
            self.release_at = None
            return True
        return False


def format_remaining(ms: int) -> str:
    """m:ss countdown for the prison overlay."""
    if ms <= 0:
        return "0:00"
    minutes = ms // 60000
    seconds = (ms % 60000) // 1000
    return f"{minutes}:{seconds:02d}"
