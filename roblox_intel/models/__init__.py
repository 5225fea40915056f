"""SQLAlchemy models."""
from roblox_intel.models.game import Game, GameMetric
from roblox_intel.models.group import CompetitorGroup, GroupGame

__all__ = [
    "Game",
    "GameMetric",
    "CompetitorGroup",
    "GroupGame",
]
