"""Game session: the client-side context that owns the recurring timers.

A session wires the engine, cooldown tracker, prison state machine and
persistence client together, and runs three asyncio tasks while started:

- cooldown tick (1 s): prunes expired cooldowns
- prison tick (1 s): releases the player when the sentence elapses and
  forces a full refresh from the server
- refresh (30 s): pulls authoritative state back down

Saves run as background tasks; the caller of execute_mission never waits on
them. Server responses replace local state, except that an active prison
sentence or cooldown is never lifted by a snapshot.
"""

import asyncio
import logging
import random
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Set

from ...config import get_settings
from .client import AuthenticationError, GameDataClient, PersistenceError
from .cooldowns import CooldownTracker
from .engine import MissionEngine, now_ms
from .game_logger import GameLogger
from .missions import MISSIONS
from .prison import PrisonStateMachine, format_remaining
from .progression import get_player_level
from .state import MissionResult, PlayerState

logger = logging.getLogger(__name__)


class GameSession:
    """One player's live game state and its background tasks."""

    def __init__(
        self,
        client: GameDataClient,
        rng: Optional[random.Random] = None,
        clock: Callable[[], int] = now_ms,
        game_logger: Optional[GameLogger] = None,
        tick_interval: Optional[float] = None,
        refresh_interval: Optional[float] = None,
        **engine_options: Any,
    ):
        settings = get_settings()
        self.client = client
        self.clock = clock
        self.tick_interval = (
            tick_interval if tick_interval is not None else settings.tick_interval_ms / 1000
        )
        self.refresh_interval = (
            refresh_interval if refresh_interval is not None else settings.refresh_interval_ms / 1000
        )
        self.cooldowns = CooldownTracker()
        self.prison = PrisonStateMachine()
        engine_options.setdefault("prison_time_ms", settings.prison_time_ms)
        self.engine = MissionEngine(
            cooldowns=self.cooldowns,
            prison=self.prison,
            rng=rng,
            clock=clock,
            logger=game_logger,
            on_change=self._schedule_save,
            **engine_options,
        )
        self.last_error: Optional[BaseException] = None
        self._tasks: List[asyncio.Task] = []
        self._pending_saves: Set[asyncio.Task] = set()

    @property
    def player(self) -> PlayerState:
        return self.engine.player

    @property
    def in_prison(self) -> bool:
        return self.prison.is_imprisoned

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    # -- lifecycle -------------------------------------------------------

    async def start(self) -> None:
        """Load state from the server and start the timers."""
        if self._tasks:
            return
        try:
            await self.refresh()
        except PersistenceError as e:
            # Play on from defaults; the periodic refresh retries the load
            logger.warning(f"Initial game data load failed: {e}")
            self.last_error = e
        self._tasks = [
            asyncio.create_task(self._every(self.tick_interval, self.tick_cooldowns), name="cooldown-tick"),
            asyncio.create_task(self._every(self.tick_interval, self.tick_prison), name="prison-tick"),
            asyncio.create_task(self._every(self.refresh_interval, self._periodic_refresh), name="refresh"),
        ]

    async def stop(self) -> None:
        """Cancel timers and in-flight saves."""
        tasks = self._tasks + list(self._pending_saves)
        self._tasks = []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._pending_saves.clear()

    async def __aenter__(self) -> "GameSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    # -- gameplay --------------------------------------------------------

    def execute_mission(self, mission_id: str) -> MissionResult:
        """Attempt a mission; raises MissionError subclasses on rejection."""
        return self.engine.execute(mission_id)

    def available_missions(self) -> List[Dict[str, Any]]:
        """Catalog entries with their remaining cooldown and completion flag."""
        now = self.clock()
        return [
            {
                "mission": mission,
                "cooldown_remaining_ms": self.cooldowns.remaining_ms(mission.id, now),
                "completed": mission.id in self.player.completed_missions,
            }
            for mission in MISSIONS
        ]

    def player_level(self) -> int:
        return get_player_level(self.player.balance)

    def prison_countdown(self) -> str:
        return format_remaining(self.prison.remaining_ms(self.clock()))

    # -- timers ----------------------------------------------------------

    def tick_cooldowns(self) -> List[str]:
        released = self.cooldowns.tick(self.clock())
        if released:
            self.engine.player = replace(self.player, cooldowns=self.cooldowns.snapshot())
        return released

    async def tick_prison(self) -> bool:
        """Release the player once the sentence has elapsed, then resync."""
        if not self.prison.check_release(self.clock()):
            return False
        logger.info("Prison sentence served, reloading game data")
        self.engine.player = replace(self.player, prison_time=None)
        try:
            await self.refresh()
        except (PersistenceError, AuthenticationError) as e:
            logger.warning(f"Reload after release failed: {e}")
            self.last_error = e
        return True

    async def refresh(self) -> PlayerState:
        """Replace local state with the server's."""
        self.apply_snapshot(await self.client.load())
        return self.player

    def apply_snapshot(self, snapshot: PlayerState) -> None:
        """Adopt server state; an elapsed sentence is cleared, an active one kept."""
        self.engine.load_player(snapshot)

    async def wait_for_saves(self) -> None:
        """Block until in-flight saves settle (used on shutdown and in tests)."""
        while self._pending_saves:
            await asyncio.gather(*list(self._pending_saves), return_exceptions=True)

    async def _periodic_refresh(self) -> None:
        try:
            await self.refresh()
        except (PersistenceError, AuthenticationError) as e:
            logger.warning(f"Periodic game data refresh failed: {e}")
            self.last_error = e

    async def _every(self, interval: float, fn: Callable[[], Any]) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                result = fn()
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                # One bad tick must not stop the timer
                logger.exception(f"Game timer {getattr(fn, '__name__', fn)} failed: {e}")
                self.last_error = e

    # -- persistence -----------------------------------------------------

    def _schedule_save(self, player: PlayerState) -> None:
        task = asyncio.get_running_loop().create_task(self._save(player))
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)

    async def _save(self, player: PlayerState) -> None:
        try:
            saved = await self.client.save(player)
        except (PersistenceError, AuthenticationError) as e:
            logger.error(f"Saving game data failed: {e}")
            self.last_error = e
            return
        except Exception as e:
            logger.exception(f"Unexpected error saving game data: {e}")
            self.last_error = e
            return
        # Only adopt the response if nothing newer happened locally meanwhile
        if self.player == player:
            self.apply_snapshot(saved)
