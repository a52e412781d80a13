"""
Unit tests for client activity tiers.
"""

import itertools

from job_catalog.models import ActivityPoint, JobRecord
from job_catalog.tiers import (
    ACTIVE_TIER,
    LOW_TIER,
    MODERATE_TIER,
    TOP_TIER,
    classify,
    client_activity_points,
    summarize,
)


def point(client_id, jobs, spent):
    return ActivityPoint(client_id=str(client_id), jobs_posted=jobs, total_spent=spent)


class TestClassify:
    """Tests for tier classification against observed maxima."""

    def test_thresholds(self):
        """Should place points by fraction of the maxima."""
        points = [
            point("max", 100, 10000),
            point("top", 75, 7500),
            point("active", 50, 100),
            point("moderate", 5, 3500),
            point("low", 10, 100),
        ]
        tiers = {p.client_id: p.tier for p in classify(points)}
        assert tiers["max"] == TOP_TIER
        assert tiers["top"] == TOP_TIER
        assert tiers["active"] == ACTIVE_TIER
        assert tiers["moderate"] == MODERATE_TIER
        assert tiers["low"] == LOW_TIER

    def test_exactly_one_tier_each(self):
        """Should classify every known point exactly once."""
        points = [point(i, i, i * 10) for i in range(1, 21)]
        classified = classify(points)
        assert len(classified) == 20
        assert sum(entry["count"] for entry in summarize(classified)) == 20

    def test_monotonic(self):
        """Should never rank a point below one it dominates on both axes."""
        values = [(0, 50), (10, 0), (30, 300), (50, 500), (70, 700), (100, 1000), (20, 900), (90, 10)]
        classified = {p.client_id: p for p in classify(point(f"{j}-{s}", j, s) for j, s in values)}
        for a, b in itertools.permutations(classified.values(), 2):
            if a.jobs_posted >= b.jobs_posted and a.total_spent >= b.total_spent:
                assert a.tier.rank <= b.tier.rank

    def test_unknown_activity_excluded(self):
        """Should leave out points with nothing on either axis."""
        classified = classify([point("none", 0, 0), point("some", 3, 0)])
        assert [p.client_id for p in classified] == ["some"]

    def test_zero_axis_never_qualifies(self):
        """Should rank by the other axis when one axis has no activity."""
        classified = classify([point("a", 10, 0), point("b", 2, 0)])
        tiers = {p.client_id: p.tier for p in classified}
        assert tiers["a"] == ACTIVE_TIER
        assert tiers["b"] == LOW_TIER

    def test_empty(self):
        """Should return nothing for an empty snapshot."""
        assert classify([]) == []
        assert classify([point("x", 0, 0)]) == []


class TestClientActivityPoints:
    """Tests for reading activity magnitudes from job records."""

    def test_parses_loose_columns(self):
        """Should parse count and currency strings."""
        records = [
            JobRecord(id=1, client_jobs_posted="12 jobs posted", client_total_spent="$5,000+", client_location="Spain"),
            JobRecord(id=2, client_jobs_posted="3", client_total_spent=None),
        ]
        points = client_activity_points(records)
        assert len(points) == 1
        assert points[0].jobs_posted == 12
        assert points[0].total_spent == 5000
        assert points[0].location == "Spain"

    def test_unknown_location(self):
        """Should label missing locations as Unknown."""
        points = client_activity_points([JobRecord(id=1, client_jobs_posted=1, client_total_spent=1)])
        assert points[0].location == "Unknown"


class TestSummarize:
    """Tests for the tier legend."""

    def test_legend_order(self):
        """Should list every tier in rank order."""
        legend = summarize(classify([point("a", 10, 10)]))
        assert [entry["category"] for entry in legend] == [
            "High Volume & High Spend",
            "Active Clients",
            "Moderate Activity",
            "Low Activity",
        ]
        assert legend[0]["count"] == 1
