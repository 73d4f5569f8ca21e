"""Player level and mission success probability.

Both functions are pure. Level is a step function of balance; probability
moves up with each level the player has over the mission's difficulty and
down (faster) with each level short of it.
"""

from typing import List

from .missions import Mission

# Minimum balance for levels 1..6
LEVEL_THRESHOLDS: List[int] = [0, 1_000, 5_000, 25_000, 100_000, 500_000]
MAX_LEVEL = len(LEVEL_THRESHOLDS)

LEVEL_BONUS = 0.05  # per level above difficulty
UNDERLEVEL_PENALTY = 0.15  # per level below difficulty
MIN_SUCCESS = 0.0
MAX_SUCCESS = 0.95  # nothing is a sure thing


def get_player_level(balance: int) -> int:
    """Level tier (1..6) for a balance."""
    if balance < 0:
        raise ValueError(f"balance must be non-negative, got {balance}")
    level = 1
    for tier, threshold in enumerate(LEVEL_THRESHOLDS, start=1):
        if balance >= threshold:
            level = tier
    return level


def get_mission_success_probability(mission: Mission, player_level: int) -> float:
    """Success chance in [0, 1]; non-decreasing in player_level."""
    if player_level < 1:
        raise ValueError(f"player_level must be >= 1, got {player_level}")

    gap = player_level - mission.difficulty
    if gap >= 0:
        probability = mission.base_success + LEVEL_BONUS * gap
    else:
        probability = mission.base_success - UNDERLEVEL_PENALTY * -gap
    return max(MIN_SUCCESS, min(MAX_SUCCESS, probability))


def is_success(roll: float, probability: float) -> bool:
    """A roll wins when it is at or below the probability (inclusive)."""
    return roll <= probability
