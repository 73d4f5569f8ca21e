import math

from pydantic import BaseModel, Field, field_validator, field_serializer
from typing import Optional, List, Dict, Any
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def ms_to_datetime(value: int) -> datetime:
    """Epoch milliseconds to an aware UTC datetime (exact, no float math)."""
    return EPOCH + timedelta(milliseconds=value)


def datetime_to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // timedelta(milliseconds=1)


class GameData(BaseModel):
    """Wire shape of a player's game state (GET game-data / save-game body)."""
    balance: int = Field(0, ge=0)
    completed_missions: List[str] = Field(default_factory=list, alias="completedMissions")
    prison_time: Optional[datetime] = Field(None, alias="prisonTime")  # release moment
    cooldowns: Dict[str, int] = Field(default_factory=dict)  # mission id -> end (epoch ms)

    class Config:
        populate_by_name = True

    @field_validator("prison_time", mode="before")
    @classmethod
    def _parse_prison_time(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if isinstance(value, float) and not math.isfinite(value):
                raise ValueError("prisonTime must be a finite number")
            try:
                return ms_to_datetime(int(value))
            except OverflowError:
                raise ValueError("prisonTime is out of range")
        return value

    @field_validator("prison_time")
    @classmethod
    def _ensure_aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("cooldowns", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_serializer("prison_time")
    def _serialize_prison_time(self, value: Optional[datetime]) -> Optional[int]:
        return datetime_to_ms(value) if value is not None else None


class SaveGameResponse(BaseModel):
    message: str
    data: GameData
