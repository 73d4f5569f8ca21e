"""Persistence of player game state.

Saves replace the stored state wholesale inside a snapshot-isolated
transaction. Concurrent saves for the same user collide at the database
(serialization failure) and the losing request re-runs the whole
read-modify-write with exponential backoff. The outcome is last-writer-wins:
fields are never merged across concurrent saves.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings, Settings
from ..models import User
from ..schemas.game import GameData

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected
TRANSIENT_SQLSTATES = frozenset({"40001", "40P01"})

SYNCHRONOUS_COMMIT_LEVELS = frozenset({"on", "off", "local", "remote_write", "remote_apply"})


class InvalidGameData(ValueError):
    """Save payload rejected before any storage access."""


class UserNotFound(LookupError):
    """No user row for the authenticated id."""


def validate_save_payload(body: Any) -> GameData:
    """Validate a raw save-game body without touching storage."""
    if not isinstance(body, dict):
        raise InvalidGameData("Invalid game data")

    balance = body.get("balance")
    if (
        isinstance(balance, bool)
        or not isinstance(balance, (int, float))
        or not balance >= 0
        or (isinstance(balance, float) and not balance.is_integer())
    ):
        raise InvalidGameData("Invalid balance value")

    completed = body.get("completedMissions")
    if not isinstance(completed, list) or not all(isinstance(m, str) for m in completed):
        raise InvalidGameData("Invalid completedMissions format")

    try:
        return GameData.model_validate({
            "balance": int(balance),
            "completedMissions": completed,
            "prisonTime": body.get("prisonTime"),
            "cooldowns": body.get("cooldowns"),
        })
    except ValidationError as e:
        raise InvalidGameData("Invalid game data") from e


def is_transient_conflict(error: BaseException) -> bool:
    """True for database errors that signal a concurrent transaction collision."""
    if not isinstance(error, DBAPIError):
        return False
    orig: Optional[BaseException] = error.orig
    # Driver errors may be wrapped by the dialect adapter; check the chain.
    for _ in range(3):
        if orig is None:
            break
        code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        if code in TRANSIENT_SQLSTATES:
            return True
        orig = orig.__cause__
    return False


def game_data_from_user(user: User) -> GameData:
    return GameData(
        balance=user.balance or 0,
        completed_missions=list(user.completed_missions or []),
        prison_time=user.prison_time,
        cooldowns=dict(user.cooldowns or {}),
    )


async def load_game_state(session: AsyncSession, user_id: str) -> GameData:
    user = await session.get(User, user_id)
    if user is None:
        raise UserNotFound(user_id)
    return game_data_from_user(user)


async def _begin_snapshot_transaction(session: AsyncSession, settings: Settings) -> None:
    conn = await session.connection(
        execution_options={"isolation_level": settings.save_isolation_level}
    )
    level = (settings.save_synchronous_commit or "").lower()
    if conn.dialect.name == "postgresql" and level in SYNCHRONOUS_COMMIT_LEVELS:
        await session.execute(text(f"SET LOCAL synchronous_commit TO {level}"))


async def _replace_game_state(session: AsyncSession, user_id: str, data: GameData) -> GameData:
    user = await session.get(User, user_id)
    if user is None:
        raise UserNotFound(user_id)

    user.balance = data.balance
    user.completed_missions = list(data.completed_missions)
    user.prison_time = data.prison_time
    user.cooldowns = dict(data.cooldowns)

    await session.commit()
    return game_data_from_user(user)


async def save_game_state(
    user_id: str,
    data: GameData,
    session_factory: Callable[[], AsyncSession],
    max_retries: Optional[int] = None,
    base_delay: Optional[float] = None,
) -> GameData:
    """Atomically replace a user's game state, retrying transient conflicts.

    Each attempt opens a fresh session and transaction. The transaction is
    rolled back and the session closed on every exit path. Errors other than
    transient conflicts, or the conflict on the final attempt, propagate.

    Args:
        user_id: Authenticated user id.
        data: Validated payload (see validate_save_payload).
        session_factory: Callable returning a new AsyncSession.
        max_retries: Total attempts (default settings.save_max_retries).
        base_delay: First backoff in seconds, doubled per attempt
            (default settings.save_retry_base_delay_ms).

    Returns:
        The committed state as stored.
    """
    settings = get_settings()
    if max_retries is None:
        max_retries = settings.save_max_retries
    if base_delay is None:
        base_delay = settings.save_retry_base_delay_ms / 1000
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    for attempt in range(1, max_retries + 1):
        try:
            async with session_factory() as session:
                try:
                    await _begin_snapshot_transaction(session, settings)
                    saved = await _replace_game_state(session, user_id, data)
                except Exception:
                    await session.rollback()
                    raise
        except Exception as e:
            if attempt == max_retries or not is_transient_conflict(e):
                if not isinstance(e, UserNotFound):
                    logger.error(
                        f"Saving game data failed for user {user_id} "
                        f"on attempt {attempt}/{max_retries}: {e}"
                    )
                raise
            delay = base_delay * 2 ** (attempt - 1)
            logger.warning(
                f"Transient conflict saving game data for user {user_id} "
                f"(attempt {attempt}/{max_retries}), retrying in {delay * 1000:.0f}ms"
            )
            await asyncio.sleep(delay)
            continue

        if attempt > 1:
            logger.info(f"Saved game data for user {user_id} after {attempt} attempts")
        return saved
