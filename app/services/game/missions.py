"""Mission catalog.

Static mission definitions. Difficulty runs from 1 (street level) to 5
(needs a top-tier crew); the success chance scales against the player's
level (see progression.py).
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

MINUTE_MS = 60 * 1000


@dataclass(frozen=True)
class Mission:
    """A catalog mission. Immutable."""
    id: str
    name: str
    reward: int
    base_success: float  # chance at level == difficulty, 0-1
    cooldown: int  # ms
    difficulty: int  # 1-5
    description: str = ""


MISSIONS: List[Mission] = [
    Mission(
        id="pickpocket",
        name="Pickpocket a Tourist",
        reward=100,
        base_success=0.85,
        cooldown=1 * MINUTE_MS,
        difficulty=1,
        description="Lift a wallet on the boardwalk.",
    ),
    Mission(
        id="shoplift",
        name="Shoplift Electronics",
        reward=250,
        base_success=0.75,
        cooldown=2 * MINUTE_MS,
        difficulty=1,
        description="Walk out of the mall with a pair of headphones.",
    ),
    Mission(
        id="car-theft",
        name="Steal a Car",
        reward=1_500,
        base_success=0.65,
        cooldown=5 * MINUTE_MS,
        difficulty=2,
        description="Hotwire a sedan and deliver it to the chop shop.",
    ),
    Mission(
        id="protection",
        name="Collect Protection Money",
        reward=4_000,
        base_success=0.6,
        cooldown=10 * MINUTE_MS,
        difficulty=3,
        description="Remind the restaurant owners who keeps the street safe.",
    ),
    Mission(
        id="armored-truck",
        name="Hit an Armored Truck",
        reward=20_000,
        base_success=0.5,
        cooldown=20 * MINUTE_MS,
        difficulty=4,
        description="Intercept the cash run between two branches.",
    ),
    Mission(
        id="heist",
        name="Bank Heist",
        reward=100_000,
        base_success=0.4,
        cooldown=30 * MINUTE_MS,
        difficulty=5,
        description="Crack the vault of the city's central bank.",
    ),
]

MISSIONS_BY_ID: Dict[str, Mission] = {m.id: m for m in MISSIONS}


def get_mission(mission_id: str) -> Optional[Mission]:
    return MISSIONS_BY_ID.get(mission_id)
