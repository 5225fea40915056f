"""Dashboard statistics API endpoint."""
import asyncio

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.orm import selectinload

from roblox_intel.database import get_session_maker
from roblox_intel.api.rate_limit import rate_limit
from roblox_intel.models import CompetitorGroup, Game, GameMetric
from roblox_intel.transforms import (
    EMERGING_CANDIDATE_LIMIT,
    EMERGING_DISPLAY_LIMIT,
    count_qualified,
    emerging_cutoff,
    row_to_dict,
    select_emerging_stars,
    snapshot_to_dict,
)

router = APIRouter(prefix="/stats", tags=["stats"], dependencies=[Depends(rate_limit)])


class DashboardStats(BaseModel):
    """Headline counts for the dashboard."""
    totalGames: int
    totalGroups: int
    qualifiedGroups: int
    totalMetricSnapshots: int
    emergingStarsCount: int


class EmergingStar(BaseModel):
    """A recent game with strong player numbers."""
    name: str
    placeId: int
    ccu: int


class StatsResponse(BaseModel):
    """Response for dashboard stats."""
    stats: DashboardStats
    emergingStars: list[EmergingStar]


async def _count_rows(session_maker: async_sessionmaker, model) -> int:
    async with session_maker() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar_one() or 0


async def _group_flags(session_maker: async_sessionmaker) -> list[dict]:
    async with session_maker() as session:
        result = await session.execute(
            select(CompetitorGroup.id, CompetitorGroup.is_qualified)
        )
        return [dict(row._mapping) for row in result.all()]


async def _emerging_candidates(session_maker: async_sessionmaker) -> list[dict]:
    """Most recently created games inside the emerging window, with snapshots."""
    async with session_maker() as session:
        result = await session.execute(
            select(Game)
            .options(selectinload(Game.metrics))
            .where(Game.game_created_at >= emerging_cutoff())
            .order_by(Game.game_created_at.desc())
            .limit(EMERGING_CANDIDATE_LIMIT)
        )
        return [
            {
                **row_to_dict(game, ("id", "place_id", "name", "game_created_at")),
                "metrics": [snapshot_to_dict(m) for m in game.metrics],
            }
            for game in result.scalars().all()
        ]


@router.get("", response_model=StatsResponse)
async def get_stats(session_maker: async_sessionmaker = Depends(get_session_maker)):
    """Get headline counts and the current emerging stars."""
    # Let all three finish so no failure goes unretrieved, then surface the first
    outcomes = await asyncio.gather(
        _count_rows(session_maker, Game),
        _group_flags(session_maker),
        _count_rows(session_maker, GameMetric),
        return_exceptions=True,
    )
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    total_games, groups, total_snapshots = outcomes

    stars = select_emerging_stars(await _emerging_candidates(session_maker))

    return StatsResponse(
        stats=DashboardStats(
            totalGames=total_games,
            totalGroups=len(groups),
            qualifiedGroups=count_qualified(groups),
            totalMetricSnapshots=total_snapshots,
            emergingStarsCount=len(stars),
        ),
        emergingStars=[EmergingStar(**star) for star in stars[:EMERGING_DISPLAY_LIMIT]],
    )
