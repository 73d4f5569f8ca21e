from .game import GameData, SaveGameResponse, ms_to_datetime, datetime_to_ms

__all__ = [
    "GameData", "SaveGameResponse",
    "ms_to_datetime", "datetime_to_ms",
]
