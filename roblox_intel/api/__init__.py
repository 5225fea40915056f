"""API routes."""
from roblox_intel.api.games import router as games_router
from roblox_intel.api.groups import router as groups_router
from roblox_intel.api.stats import router as stats_router
from roblox_intel.api.save import router as save_router
from roblox_intel.api.save_group import router as save_group_router

__all__ = [
    "games_router",
    "groups_router",
    "stats_router",
    "save_router",
    "save_group_router",
]
