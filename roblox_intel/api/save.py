"""Save discovered games into the tracker."""
import logging
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roblox_intel.database import get_session
from roblox_intel.api.rate_limit import rate_limit
from roblox_intel.models import CompetitorGroup, Game, GameMetric, GroupGame
from roblox_intel.models.game import utcnow
from roblox_intel.transforms import EMERGING_MIN_PLAYERS, MAX_PLACE_ID, row_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(tags=["save"], dependencies=[Depends(rate_limit)])


class CreatorPayload(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    type: Optional[str] = None


class DatesPayload(BaseModel):
    created: Optional[datetime] = None


class MetricsPayload(BaseModel):
    """Metrics as reported by discovery; any field may be missing."""
    visits: Optional[int] = None
    favorites: Optional[int] = None
    current_players: Optional[int] = Field(None, alias="currentPlayers")
    peak_players: Optional[int] = Field(None, alias="peakPlayers")
    # Vote counts arrive as upVotes/downVotes straight from the games API
    likes: Optional[int] = Field(None, validation_alias=AliasChoices("likes", "upVotes"))
    dislikes: Optional[int] = Field(None, validation_alias=AliasChoices("dislikes", "downVotes"))
    like_ratio: Optional[float] = Field(None, alias="likeRatio")
    estimated_revenue: Optional[int] = Field(None, alias="estimatedRevenue")

    class Config:
        populate_by_name = True


class GamePayload(BaseModel):
    """A game as produced by the discovery and emerging pages."""
    place_id: int = Field(..., alias="placeId", gt=0, le=MAX_PLACE_ID)
    universe_id: Optional[int] = Field(None, alias="universeId")
    name: str
    description: Optional[str] = None
    genre: Optional[str] = None
    creator: Optional[CreatorPayload] = None
    dates: Optional[DatesPayload] = None
    thumbnail_url: Optional[str] = Field(None, alias="thumbnailUrl")
    metrics: Optional[MetricsPayload] = None
    is_recent: bool = Field(False, alias="isRecent")
    emerging_score: Optional[float] = Field(None, alias="emergingScore")

    class Config:
        populate_by_name = True


class SaveGameRequest(BaseModel):
    """Request to save a game, optionally linking it to a group."""
    game: GamePayload
    group_id: Optional[uuid.UUID] = Field(None, alias="groupId")

    class Config:
        populate_by_name = True


async def _upsert_game(db: AsyncSession, payload: GamePayload) -> Game:
    """Insert the game on first sight, refresh its attributes otherwise."""
    result = await db.execute(select(Game).where(Game.place_id == payload.place_id))
    game = result.scalar_one_or_none()

    if game is None:
        game = Game(place_id=payload.place_id)
        db.add(game)

    creator = payload.creator or CreatorPayload()
    game.universe_id = payload.universe_id
    game.name = payload.name
    game.description = payload.description
    game.genre = payload.genre
    game.creator_id = creator.id
    game.creator_name = creator.name
    game.creator_type = creator.type
    game.game_created_at = payload.dates.created if payload.dates else None
    game.thumbnail_url = payload.thumbnail_url
    game.last_updated_at = utcnow()

    await db.flush()
    return game


def _add_snapshot(db: AsyncSession, game: Game, payload: GamePayload) -> GameMetric:
    metrics = payload.metrics or MetricsPayload()
    snapshot = GameMetric(game_id=game.id, **metrics.model_dump())
    db.add(snapshot)
    return snapshot


async def _link_to_group(
    db: AsyncSession,
    group: CompetitorGroup,
    game: Game,
    is_emerging_star: bool,
    quality_score: Optional[float],
) -> GroupGame:
    """Add the game to the group, or refresh the existing membership."""
    result = await db.execute(
        select(GroupGame)
        .where(GroupGame.group_id == group.id)
        .where(GroupGame.game_id == game.id)
    )
    link = result.scalar_one_or_none()
    if link is None:
        link = GroupGame(group_id=group.id, game_id=game.id)
        db.add(link)

    link.is_emerging_star = is_emerging_star
    link.quality_score = quality_score
    return link


@router.post("/save-game")
async def save_game(
    request: SaveGameRequest,
    db: AsyncSession = Depends(get_session),
):
    """Save a game and a fresh metrics snapshot, optionally adding it to a group."""
    group = None
    if request.group_id:
        group = await db.get(CompetitorGroup, request.group_id)
        if not group:
            raise HTTPException(status_code=404, detail="Group not found")

    game = await _upsert_game(db, request.game)
    _add_snapshot(db, game, request.game)

    if group:
        payload = request.game
        players = payload.metrics.current_players if payload.metrics else None
        await _link_to_group(
            db,
            group,
            game,
            is_emerging_star=bool(payload.is_recent and players is not None and players >= EMERGING_MIN_PLAYERS),
            quality_score=payload.emerging_score,
        )

    await db.commit()
    logger.info(f"Saved game {game.place_id} ({game.name})" + (f" to group {group.group_name}" if group else ""))

    return {
        "success": True,
        "game": row_to_dict(game),
        "message": f"Saved {game.name} to database",
    }
