"""Client activity tiers relative to the busiest clients in the data set"""
from typing import Iterable, NamedTuple

from .models import ActivityPoint, ClassifiedPoint, JobRecord, TierClassification
from .normalize import parse_count, parse_currency_magnitude
from .logger import get_logger

logger = get_logger()


class TierRule(NamedTuple):
    tier: TierClassification
    threshold: float
    require_both: bool


TOP_TIER = TierClassification(rank=1, category="High Volume & High Spend", color="#DC2626", size=35)
ACTIVE_TIER = TierClassification(rank=2, category="Active Clients", color="#F59E0B", size=30)
MODERATE_TIER = TierClassification(rank=3, category="Moderate Activity", color="#10B981", size=25)
LOW_TIER = TierClassification(rank=4, category="Low Activity", color="#6B7280", size=20)

TIERS = (TOP_TIER, ACTIVE_TIER, MODERATE_TIER, LOW_TIER)

# Evaluated in order, first match wins
TIER_RULES = (
    TierRule(TOP_TIER, 0.7, True),
    TierRule(ACTIVE_TIER, 0.5, False),
    TierRule(MODERATE_TIER, 0.3, False),
)


def _reaches(value: int, maximum: int, threshold: float) -> bool:
    # An axis with no observed activity cannot qualify anyone
    return maximum > 0 and value >= maximum * threshold


def classify_point(point: ActivityPoint, max_jobs: int, max_spent: int) -> TierClassification:
    for rule in TIER_RULES:
        jobs_ok = _reaches(point.jobs_posted, max_jobs, rule.threshold)
        spent_ok = _reaches(point.total_spent, max_spent, rule.threshold)
        if (jobs_ok and spent_ok) if rule.require_both else (jobs_ok or spent_ok):
            return rule.tier
    return LOW_TIER


def classify(points: Iterable[ActivityPoint]) -> list[ClassifiedPoint]:
    """
    Classify a snapshot of activity points. Thresholds are fractions of the
    maxima observed in this snapshot, so tiers are only comparable within
    one call. Points with no known activity on either axis are left out
    rather than being shown as low activity.
    """
    points = list(points)
    known = [p for p in points if p.jobs_posted > 0 or p.total_spent > 0]
    if not known:
        return []

    max_jobs = max(p.jobs_posted for p in known)
    max_spent = max(p.total_spent for p in known)
    logger.debug(
        f"Classifying {len(known)} of {len(points)} clients "
        f"(max jobs posted={max_jobs}, max spent={max_spent})"
    )

    return [
        ClassifiedPoint(**p.model_dump(), tier=classify_point(p, max_jobs, max_spent))
        for p in known
    ]


def client_activity_points(records: Iterable[JobRecord]) -> list[ActivityPoint]:
    """Read jobs-posted and total-spend magnitudes from job records"""
    points = []
    for record in records:
        if record.client_jobs_posted is None or record.client_total_spent is None:
            continue
        points.append(ActivityPoint(
            client_id=str(record.id),
            jobs_posted=parse_count(record.client_jobs_posted),
            total_spent=parse_currency_magnitude(record.client_total_spent),
            location=record.client_location or "Unknown",
        ))
    return points


def summarize(classified: Iterable[ClassifiedPoint]) -> list[dict]:
    """Legend entries in tier order with the number of clients in each"""
    counts = {tier.rank: 0 for tier in TIERS}
    for point in classified:
        counts[point.tier.rank] += 1
    return [
        {"category": tier.category, "color": tier.color, "count": counts[tier.rank]}
        for tier in TIERS
    ]
