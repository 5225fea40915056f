"""Tracked games API endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from roblox_intel.database import get_session
from roblox_intel.api.rate_limit import rate_limit
from roblox_intel.models import Game
from roblox_intel.transforms import MAX_PLACE_ID, row_to_dict, snapshot_to_dict, with_latest_metrics, with_metrics_history

router = APIRouter(prefix="/games", tags=["games"], dependencies=[Depends(rate_limit)])


@router.get("")
async def list_games(db: AsyncSession = Depends(get_session)):
    """Get all tracked games, most recently updated first, with their latest metrics."""
    result = await db.execute(
        select(Game)
        .options(selectinload(Game.metrics))
        .order_by(Game.last_updated_at.desc())
    )
    games = result.scalars().all()

    return {
        "games": [
            with_latest_metrics(row_to_dict(game), [snapshot_to_dict(m) for m in game.metrics])
            for game in games
        ]
    }


@router.get("/{place_id}")
async def get_game(
    place_id: int = Path(..., gt=0, le=MAX_PLACE_ID),
    db: AsyncSession = Depends(get_session),
):
    """Get a game with its full metrics history."""
    result = await db.execute(
        select(Game)
        .options(selectinload(Game.metrics))
        .where(Game.place_id == place_id)
    )
    game = result.scalar_one_or_none()

    if not game:
        raise HTTPException(status_code=404, detail="Game not found")

    return {
        "game": with_metrics_history(row_to_dict(game), [snapshot_to_dict(m) for m in game.metrics])
    }
