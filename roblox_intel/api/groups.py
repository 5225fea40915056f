"""Competitor group API endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from roblox_intel.database import get_session
from roblox_intel.api.rate_limit import rate_limit
from roblox_intel.models import CompetitorGroup, GroupGame
from roblox_intel.transforms import MEMBER_GAME_FIELDS, flatten_group, row_to_dict

router = APIRouter(prefix="/groups", tags=["groups"], dependencies=[Depends(rate_limit)])


@router.get("")
async def list_groups(db: AsyncSession = Depends(get_session)):
    """Get all competitor groups with their member games flattened in."""
    result = await db.execute(
        select(CompetitorGroup)
        .options(selectinload(CompetitorGroup.memberships).selectinload(GroupGame.game))
        .order_by(CompetitorGroup.updated_at.desc())
    )
    groups = result.scalars().all()

    transformed = []
    for group in groups:
        memberships = [
            {
                "is_emerging_star": link.is_emerging_star,
                "quality_score": link.quality_score,
                "notes": link.notes,
                "game": row_to_dict(link.game, MEMBER_GAME_FIELDS) if link.game else None,
            }
            for link in group.memberships
        ]
        transformed.append(flatten_group(row_to_dict(group), memberships))

    return {"groups": transformed}
