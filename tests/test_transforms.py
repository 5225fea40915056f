"""Tests for the response reshaping functions."""
from datetime import datetime, timedelta, timezone

from roblox_intel.transforms import (
    count_qualified,
    emerging_cutoff,
    flatten_group,
    is_emerging_star,
    latest_snapshot,
    metrics_history,
    select_emerging_stars,
    with_latest_metrics,
    with_metrics_history,
)

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def snap(hours, **fields):
    return {"id": f"m{hours}", "collected_at": T0 + timedelta(hours=hours), **fields}


class TestLatestSnapshot:
    """Latest snapshot is the one with the greatest collection time."""

    def test_empty_returns_none(self):
        assert latest_snapshot([]) is None

    def test_picks_max_regardless_of_order(self):
        snapshots = [snap(2, current_players=50), snap(5, current_players=80), snap(1, current_players=10)]
        assert latest_snapshot(snapshots)["current_players"] == 80

    def test_equal_timestamps_keep_first(self):
        snapshots = [snap(3, current_players=1), snap(3, current_players=2)]
        assert latest_snapshot(snapshots)["current_players"] == 1


class TestMetricsHistory:
    """History ordering and the detail shape."""

    def test_sorted_ascending(self):
        history = metrics_history([snap(3), snap(1), snap(2)])
        assert [s["id"] for s in history] == ["m1", "m2", "m3"]

    def test_latest_is_last_history_entry(self):
        game = {"place_id": 123, "name": "Pet Sim"}
        shaped = with_metrics_history(game, [
            snap(3, current_players=80),
            snap(1, current_players=10),
            snap(2, current_players=50),
        ])
        assert [s["current_players"] for s in shaped["metrics_history"]] == [10, 50, 80]
        assert shaped["latest_metrics"] is shaped["metrics_history"][-1]
        assert shaped["latest_metrics"]["current_players"] == 80
        assert shaped["name"] == "Pet Sim"

    def test_no_snapshots(self):
        shaped = with_metrics_history({"place_id": 1}, [])
        assert shaped["metrics_history"] == []
        assert shaped["latest_metrics"] is None

    def test_list_shape_has_no_history(self):
        shaped = with_latest_metrics({"place_id": 1}, [snap(1), snap(2)])
        assert "metrics_history" not in shaped
        assert "metrics" not in shaped
        assert shaped["latest_metrics"]["id"] == "m2"


class TestFlattenGroup:
    """Memberships become annotated game objects."""

    def test_flattens_memberships(self):
        group = {"id": "g1", "group_name": "Anime Sims", "is_qualified": True}
        memberships = [
            {
                "is_emerging_star": True,
                "quality_score": 82.0,
                "notes": "fast growth",
                "game": {"id": "a", "place_id": 1, "name": "Anime Fighters", "genre": "Anime"},
            },
            {
                "is_emerging_star": False,
                "quality_score": None,
                "notes": None,
                "game": {"id": "b", "place_id": 2, "name": "Anime Defenders", "genre": "Anime"},
            },
        ]
        shaped = flatten_group(group, memberships)

        assert shaped["group_name"] == "Anime Sims"
        assert "memberships" not in shaped
        assert shaped["games"][0] == {
            "id": "a",
            "place_id": 1,
            "name": "Anime Fighters",
            "genre": "Anime",
            "is_emerging_star": True,
            "quality_score": 82.0,
            "notes": "fast growth",
        }
        assert shaped["games"][1]["is_emerging_star"] is False

    def test_group_without_games(self):
        assert flatten_group({"id": "g"}, [])["games"] == []

    def test_count_qualified(self):
        groups = [{"is_qualified": True}, {"is_qualified": False}, {"is_qualified": None}, {"is_qualified": True}]
        assert count_qualified(groups) == 2


class TestEmergingStars:
    """Fixed thresholds: 100 players, 70% like ratio, 180 days."""

    def test_thresholds_are_inclusive(self):
        assert is_emerging_star({"current_players": 100, "like_ratio": 70})
        assert not is_emerging_star({"current_players": 99, "like_ratio": 95})
        assert not is_emerging_star({"current_players": 5000, "like_ratio": 69.9})

    def test_missing_values_do_not_qualify(self):
        assert not is_emerging_star(None)
        assert not is_emerging_star({"current_players": None, "like_ratio": 90})
        assert not is_emerging_star({"current_players": 500, "like_ratio": None})

    def test_uses_latest_snapshot(self):
        candidates = [
            {
                "name": "Was Hot",
                "place_id": 10,
                "metrics": [snap(2, current_players=20, like_ratio=90), snap(1, current_players=900, like_ratio=90)],
            },
            {
                "name": "Now Hot",
                "place_id": 11,
                "metrics": [snap(1, current_players=20, like_ratio=90), snap(2, current_players=300, like_ratio=88)],
            },
            {"name": "No Data", "place_id": 12, "metrics": []},
        ]
        assert select_emerging_stars(candidates) == [{"name": "Now Hot", "placeId": 11, "ccu": 300}]

    def test_cutoff_is_180_days(self):
        now = datetime(2026, 7, 1, tzinfo=timezone.utc)
        assert emerging_cutoff(now) == now - timedelta(days=180)
