"""Save an analysed competitor group with all of its games."""
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from roblox_intel.database import get_session
from roblox_intel.api.rate_limit import rate_limit
from roblox_intel.api.save import GamePayload, _add_snapshot, _link_to_group, _upsert_game
from roblox_intel.models import CompetitorGroup
from roblox_intel.transforms import MAX_PLACE_ID

logger = logging.getLogger(__name__)

router = APIRouter(tags=["save"], dependencies=[Depends(rate_limit)])


class StarReference(BaseModel):
    place_id: int = Field(..., alias="placeId", gt=0, le=MAX_PLACE_ID)

    class Config:
        populate_by_name = True


class AnalysisPayload(BaseModel):
    """Output of the group analysis page."""
    group_name: Optional[str] = Field(None, alias="groupName")
    classification: dict[str, Any] = Field(default_factory=dict)
    checks: Optional[Any] = None
    score: Optional[float] = None
    qualified: bool = False
    recommendations: Optional[Any] = None
    emerging_stars: list[StarReference] = Field(default_factory=list, alias="emergingStars")

    class Config:
        populate_by_name = True


class SaveGroupRequest(BaseModel):
    """Request to save a competitor group."""
    games: list[GamePayload] = Field(..., min_length=1)
    analysis: AnalysisPayload
    group_name: Optional[str] = Field(None, alias="groupName")

    class Config:
        populate_by_name = True


def _new_group_id() -> str:
    return f"group_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


def _build_group(request: SaveGroupRequest) -> CompetitorGroup:
    analysis = request.analysis
    classification = analysis.classification
    return CompetitorGroup(
        group_id=_new_group_id(),
        group_name=request.group_name or analysis.group_name or "Untitled Group",
        structural_characteristics={
            "genre": classification.get("genre"),
            "subGenre": classification.get("subGenre"),
            "theme": classification.get("theme"),
            "template": classification.get("template"),
            "coreLoop": classification.get("coreLoop"),
            "gameCount": len(request.games),
        },
        qualification_criteria={
            "checks": analysis.checks,
            "score": analysis.score,
            "emergingStars": len(analysis.emerging_stars),
        },
        analysis_notes={
            "recommendations": analysis.recommendations,
            "analyzedAt": datetime.now(timezone.utc).isoformat(),
        },
        is_qualified=analysis.qualified,
        qualification_score=analysis.score,
    )


@router.post("/save-group")
async def save_group(
    request: SaveGroupRequest,
    db: AsyncSession = Depends(get_session),
):
    """Create a competitor group, saving and linking every game in it.

    The group and all of its games are written in one transaction.
    """
    group = _build_group(request)
    db.add(group)
    await db.flush()

    star_ids = {star.place_id for star in request.analysis.emerging_stars}
    saved = {}
    for payload in request.games:
        game = await _upsert_game(db, payload)
        _add_snapshot(db, game, payload)
        await _link_to_group(
            db,
            group,
            game,
            is_emerging_star=payload.place_id in star_ids,
            quality_score=request.analysis.score,
        )
        saved[game.place_id] = game

    await db.commit()
    logger.info(f"Saved competitor group {group.group_id} ({group.group_name}) with {len(saved)} games")

    return {
        "success": True,
        "group": {
            "id": group.id,
            "name": group.group_name,
            "qualified": group.is_qualified,
            "score": group.qualification_score,
        },
        "savedGames": len(saved),
        "message": f'Saved competitor group "{group.group_name}" with {len(saved)} games',
    }
