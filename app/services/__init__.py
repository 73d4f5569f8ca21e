# Core game modules (no database dependencies)
from .game import (
    MissionEngine, GameSession, GameDataClient,
    PlayerState, MissionResult, MISSIONS,
)

__all__ = [
    "MissionEngine",
    "GameSession",
    "GameDataClient",
    "PlayerState",
    "MissionResult",
    "MISSIONS",
]
