"""Game event log used to audit mission fairness."""

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional


@dataclass
class GameEvent:
    event: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


class GameLogger:
    """Writes game events to the `app.game` logger and keeps a short history."""

    def __init__(self, name: str = "app.game", history_size: int = 100):
        self._logger = logging.getLogger(name)
        self.history: Deque[GameEvent] = deque(maxlen=history_size)

    def log(self, event: str, message: str, data: Optional[Dict[str, Any]] = None) -> GameEvent:
        record = GameEvent(event=event, message=message, data=dict(data or {}))
        self.history.append(record)
        if record.data:
            self._logger.info(f"[{event}] {message} {record.data}")
        else:
            self._logger.info(f"[{event}] {message}")
        return record

    def events(self, event: Optional[str] = None) -> List[GameEvent]:
        if event is None:
            return list(self.history)
        return [e for e in self.history if e.event == event]


game_logger = GameLogger()
