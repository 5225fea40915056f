"""Reshaping of stored rows into API response shapes.

Everything here works on plain mappings so the functions do not care how the
rows were loaded. ``row_to_dict`` is the bridge from ORM instances.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping, Optional, Sequence

from sqlalchemy import inspect

# Emerging star heuristic
EMERGING_WINDOW_DAYS = 180
EMERGING_CANDIDATE_LIMIT = 10
EMERGING_MIN_PLAYERS = 100
EMERGING_MIN_LIKE_RATIO = 70
EMERGING_DISPLAY_LIMIT = 5

SNAPSHOT_FIELDS = (
    "id",
    "collected_at",
    "visits",
    "favorites",
    "current_players",
    "peak_players",
    "likes",
    "dislikes",
    "like_ratio",
    "estimated_revenue",
)

# Largest id a BIGINT column can hold
MAX_PLACE_ID = 2**63 - 1

MEMBER_GAME_FIELDS = ("id", "place_id", "name", "genre", "creator_name", "thumbnail_url")


def row_to_dict(obj: Any, fields: Optional[Sequence[str]] = None) -> dict[str, Any]:
    """Column values of an ORM instance, optionally restricted to ``fields``."""
    if fields is None:
        fields = [attr.key for attr in inspect(obj).mapper.column_attrs]
    return {field: getattr(obj, field) for field in fields}


def snapshot_to_dict(metric: Any) -> dict[str, Any]:
    return row_to_dict(metric, SNAPSHOT_FIELDS)


def latest_snapshot(snapshots: Iterable[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    """Snapshot with the greatest ``collected_at``, or None when empty.

    Among snapshots sharing the greatest timestamp the first one wins.
    """
    return max(snapshots, key=lambda s: s["collected_at"], default=None)


def metrics_history(snapshots: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    """Snapshots ordered oldest first."""
    return sorted(snapshots, key=lambda s: s["collected_at"])


def with_latest_metrics(game: Mapping[str, Any], snapshots: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Game attributes plus ``latest_metrics``; the snapshot set itself is dropped.

    Input:  game columns, list of snapshot mappings.
    Output: game columns + {"latest_metrics": snapshot | None}.
    """
    return {**game, "latest_metrics": latest_snapshot(snapshots)}


def with_metrics_history(game: Mapping[str, Any], snapshots: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Game attributes plus the ascending ``metrics_history`` and its last entry.

    Input:  game columns, list of snapshot mappings in any order.
    Output: game columns + {"metrics_history": [...], "latest_metrics": last | None}.
    """
    history = metrics_history(snapshots)
    return {
        **game,
        "metrics_history": history,
        "latest_metrics": history[-1] if history else None,
    }


def flatten_group(group: Mapping[str, Any], memberships: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Replace group memberships with a flat list of annotated games.

    Input:  group columns, memberships shaped
            {"is_emerging_star", "quality_score", "notes", "game": {...}}.
    Output: group columns + {"games": [{...game, is_emerging_star, quality_score, notes}]}.
    """
    games = []
    for membership in memberships:
        games.append({
            **(membership.get("game") or {}),
            "is_emerging_star": membership.get("is_emerging_star"),
            "quality_score": membership.get("quality_score"),
            "notes": membership.get("notes"),
        })
    return {**group, "games": games}


def count_qualified(groups: Iterable[Mapping[str, Any]]) -> int:
    return sum(1 for group in groups if group.get("is_qualified"))


def emerging_cutoff(now: Optional[datetime] = None) -> datetime:
    """Oldest creation date still counted as recent."""
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=EMERGING_WINDOW_DAYS)


def is_emerging_star(snapshot: Optional[Mapping[str, Any]]) -> bool:
    if not snapshot:
        return False
    players = snapshot.get("current_players")
    like_ratio = snapshot.get("like_ratio") or 0
    return players is not None and players >= EMERGING_MIN_PLAYERS and like_ratio >= EMERGING_MIN_LIKE_RATIO


def select_emerging_stars(candidates: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Filter recent games down to the ones with strong latest metrics.

    Input:  game mappings carrying a ``metrics`` list of snapshots, already
            ordered and capped by the caller.
    Output: [{"name", "placeId", "ccu"}] for every game that qualifies, in
            candidate order.
    """
    stars = []
    for game in candidates:
        latest = latest_snapshot(game.get("metrics") or [])
        if is_emerging_star(latest):
            stars.append({
                "name": game["name"],
                "placeId": game["place_id"],
                "ccu": latest["current_players"],
            })
    return stars
