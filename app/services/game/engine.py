"""Mission Execution Engine.

Runs a single mission attempt against the current player snapshot:
precondition checks, one probability roll, then exactly one of the success
or failure mutations. Preconditions and mutation happen in one synchronous
step, so attempts never interleave; persistence is handed off through the
on_change callback and never awaited here.
"""

import random
import time
from dataclasses import replace
from typing import Callable, Dict, Optional

from .cooldowns import CooldownTracker
from .game_logger import GameLogger, game_logger
from .missions import MISSIONS_BY_ID, Mission
from .prison import PrisonStateMachine
from .progression import get_mission_success_probability, get_player_level, is_success
from .state import MissionResult, PlayerState

PRISON_TIME_MS = 5 * 60 * 1000  # 5 minutes


def now_ms() -> int:
    return int(time.time() * 1000)


class MissionError(Exception):
    """A mission attempt was rejected before any state changed."""


class UnknownMissionError(MissionError):
    pass


class MissionOnCooldownError(MissionError):
    pass


class MissionAlreadyCompletedError(MissionError):
    pass


class PlayerImprisonedError(MissionError):
    pass


class MissionEngine:
    """Executes missions for one player.

    Randomness, clock, and the probability/level models are injectable so
    outcomes can be forced or seeded.
    """

    def __init__(
        self,
        player: Optional[PlayerState] = None,
        cooldowns: Optional[CooldownTracker] = None,
        prison: Optional[PrisonStateMachine] = None,
        catalog: Optional[Dict[str, Mission]] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], int] = now_ms,
        probability_fn: Callable[[Mission, int], float] = get_mission_success_probability,
        level_fn: Callable[[int], int] = get_player_level,
        logger: Optional[GameLogger] = None,
        on_change: Optional[Callable[[PlayerState], None]] = None,
        prison_time_ms: int = PRISON_TIME_MS,
    ):
        self.cooldowns = cooldowns if cooldowns is not None else CooldownTracker()
        self.prison = prison if prison is not None else PrisonStateMachine()
        self.catalog = catalog if catalog is not None else MISSIONS_BY_ID
        self.rng = rng or random.Random()
        self.clock = clock
        self.probability_fn = probability_fn
        self.level_fn = level_fn
        self.logger = logger or game_logger
        self.on_change = on_change
        self.prison_time_ms = prison_time_ms
        self.load_player(player if player is not None else PlayerState())

    def load_player(self, player: PlayerState) -> PlayerState:
        """Adopt a persisted snapshot as the current player.

        The snapshot's sentence and cooldowns are folded into the prison
        machine and the tracker, which can only extend an active lockout.
        Lockouts end through check_release() and tick() alone, so a stale
        snapshot never frees the player early.
        """
        now = self.clock()
        self.prison.sync(player.prison_time, now)
        self.cooldowns.merge(player.cooldowns, now)
        self.player = replace(
            player,
            prison_time=self.prison.release_at,
            cooldowns=self.cooldowns.snapshot(),
        )
        return self.player

    def check_preconditions(self, mission_id: str) -> Mission:
        """Return the mission if it may be attempted now, else raise MissionError."""
        mission = self.catalog.get(mission_id)
        if mission is None:
            raise UnknownMissionError("Mission not found")

        self.logger.log("mission_attempt", f"Attempting mission: {mission.name}", {
            "missionId": mission_id,
        })

        if self.cooldowns.is_active(mission_id):
            raise MissionOnCooldownError("Mission is on cooldown")
        if mission_id in self.player.completed_missions:
            raise MissionAlreadyCompletedError("Mission already completed")
        if self.prison.is_imprisoned:
            raise PlayerImprisonedError("Cannot execute missions while in prison")
        return mission

    def execute(self, mission_id: str) -> MissionResult:
        mission = self.check_preconditions(mission_id)

        level = self.level_fn(self.player.balance)
        probability = self.probability_fn(mission, level)
        roll = self.rng.random()
        success = is_success(roll, probability)

        self.logger.log("mission_result", f"Mission {'succeeded' if success else 'failed'}", {
            "missionId": mission_id,
            "roll": roll,
            "probability": probability,
        })

        now = self.clock()
        if success:
            ends_at = now + mission.cooldown
            self.cooldowns.start(mission_id, ends_at)
            self._publish(replace(
                self.player,
                balance=self.player.balance + mission.reward,
                completed_missions=self.player.completed_missions + (mission_id,),
                cooldowns=self.cooldowns.snapshot(),
            ))
            return MissionResult(
                success=True,
                reward=mission.reward,
                message=f"Successfully completed {mission.name} and earned ${mission.reward:,}!",
            )

        release_at = now + self.prison_time_ms
        self.prison.imprison(release_at)
        self._publish(replace(
            self.player,
            prison_time=release_at,
            cooldowns=self.cooldowns.snapshot(),
        ))
        return MissionResult(
            success=False,
            reward=0,
            message="Mission failed! You got caught and sent to prison!",
            imprisoned=True,
        )

    def _publish(self, player: PlayerState) -> None:
        self.player = player
        if self.on_change is not None:
            self.on_change(player)
