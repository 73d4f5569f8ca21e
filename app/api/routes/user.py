import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ...database import get_db, get_session_factory
from ...schemas.game import GameData, SaveGameResponse
from ...services.auth import get_current_user_id
from ...services.game_store import (
    InvalidGameData, UserNotFound,
    load_game_state, save_game_state, validate_save_payload,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/game-data", response_model=GameData)
async def get_game_data(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get the authenticated user's game state."""
    try:
        return await load_game_state(db, user_id)
    except UserNotFound:
        raise HTTPException(status_code=404, detail="User not found")
    except Exception as e:
        logger.error(f"Error fetching game data for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Error fetching game data")


@router.post("/save-game", response_model=SaveGameResponse)
async def save_game(
    body: Any = Body(...),
    user_id: str = Depends(get_current_user_id),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """Replace the authenticated user's game state (last writer wins)."""
    # Validate before opening any transaction
    try:
        payload = validate_save_payload(body)
    except InvalidGameData as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        saved = await save_game_state(user_id, payload, session_factory)
    except UserNotFound:
        raise HTTPException(status_code=404, detail="User not found")
    except Exception as e:
        logger.error(f"Error saving game data for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Error saving game data")

    return {"message": "Game data saved successfully", "data": saved}
