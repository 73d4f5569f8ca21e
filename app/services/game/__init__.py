"""Client-side mob game core: missions, odds, lockouts and persistence."""

from .missions import Mission, MISSIONS, MISSIONS_BY_ID, get_mission
from .progression import get_player_level, get_mission_success_probability, is_success
from .cooldowns import CooldownTracker
from .prison import PrisonStateMachine, PrisonStatus, format_remaining
from .state import PlayerState, MissionResult
from .game_logger import GameLogger, GameEvent, game_logger
from .engine import (
    MissionEngine,
    MissionError,
    UnknownMissionError,
    MissionOnCooldownError,
    MissionAlreadyCompletedError,
    PlayerImprisonedError,
    PRISON_TIME_MS,
)
from .client import GameDataClient, AuthenticationError, PersistenceError
from .session import GameSession

__all__ = [
    "Mission", "MISSIONS", "MISSIONS_BY_ID", "get_mission",
    "get_player_level", "get_mission_success_probability", "is_success",
    "CooldownTracker",
    "PrisonStateMachine", "PrisonStatus", "format_remaining",
    "PlayerState", "MissionResult",
    "GameLogger", "GameEvent", "game_logger",
    "MissionEngine", "MissionError", "UnknownMissionError",
    "MissionOnCooldownError", "MissionAlreadyCompletedError",
    "PlayerImprisonedError", "PRISON_TIME_MS",
    "GameDataClient", "AuthenticationError", "PersistenceError",
    "GameSession",
]
