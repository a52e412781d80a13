"""Presentation of the pre-aggregated market metrics"""
from typing import Any, Optional

from .logger import get_logger

logger = get_logger()

TOP_SKILLS = 15
TOP_COUNTRIES = 12

BUDGET_RANGES: dict[str, dict[str, str]] = {
    "< $100": {"color": "#FF6B6B", "description": "Quick tasks & fixes"},
    "$100-$500": {"color": "#FFB347", "description": "Short-term work"},
    "< $500": {"color": "#FFB347", "description": "Short-term work"},
    "$500-$1,000": {"color": "#4ECDC4", "description": "Standard projects"},
    "$1,000-$5,000": {"color": "#45B7D1", "description": "Major deliverables"},
    "$5,000+": {"color": "#FD79A8", "description": "High-value contracts"},
    "Unknown": {"color": "#6B7280", "description": "Unspecified budget"},
}
OTHER_RANGE = {"color": "#9B59B6", "description": "Other"}

# (minimum job count, label), highest first
DEMAND_LEVELS = (
    (15, "High Demand"),
    (8, "Growing Demand"),
    (4, "Moderate Demand"),
)


def _number(value: Any) -> float:
    """Aggregate columns come back as numbers or numeric strings"""
    if value is None or value == "":
        return 0
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Non-numeric aggregate value {value!r}, using 0")
        return 0


def _percentage(part: float, whole: float) -> float:
    return round(part / whole * 100, 1) if whole > 0 else 0.0


def present_budget_ranges(rows: Optional[list[dict]]) -> dict:
    """Label budget histogram rows and compute the weighted average project value"""
    rows = rows or []
    total_jobs = sum(_number(r.get("job_count")) for r in rows)

    ranges = []
    for row in rows:
        count = int(_number(row.get("job_count")))
        if count <= 0:
            continue
        name = row.get("budget_range") or "Unknown"
        ranges.append({
            "name": name,
            "count": count,
            "percentage": _percentage(count, total_jobs),
            "avg_budget": round(_number(row.get("avg_budget"))),
            **BUDGET_RANGES.get(name, OTHER_RANGE),
        })

    total_projects = sum(r["count"] for r in ranges)
    avg_value = (
        round(sum(r["avg_budget"] * r["count"] for r in ranges) / total_projects)
        if total_projects else 0
    )
    return {"ranges": ranges, "total_projects": total_projects, "avg_project_value": avg_value}


def demand_level(count: int) -> str:
    for minimum, label in DEMAND_LEVELS:
        if count >= minimum:
            return label
    return "Emerging Skill"


def present_skills_demand(rows: Optional[list[dict]], top: int = TOP_SKILLS) -> list[dict]:
    rows = rows or []
    total = sum(_number(r.get("demand_count")) for r in rows)
    skills = []
    for row in rows[:top]:
        count = int(_number(row.get("demand_count")))
        if count <= 0:
            continue
        skills.append({
            "skill": row.get("skill") or "Unknown",
            "count": count,
            "percentage": _percentage(count, total),
            "demand_level": demand_level(count),
        })
    return skills


def present_client_countries(rows: Optional[list[dict]], top: int = TOP_COUNTRIES) -> list[dict]:
    """Top countries with their share of all located jobs"""
    rows = rows or []
    total = sum(_number(r.get("job_count")) for r in rows)
    return [
        {
            "country": row.get("country") or "Unknown",
            "count": int(_number(row.get("job_count"))),
            "percentage": _percentage(_number(row.get("job_count")), total),
        }
        for row in rows[:top]
    ]


def present_jobs_over_time(rows: Optional[list[dict]]) -> list[dict]:
    out = []
    for row in rows or []:
        item = dict(row)
        for key, value in row.items():
            if key.endswith("count"):
                item[key] = int(_number(value))
        out.append(item)
    return out


def present_overall_stats(rows: Any) -> dict:
    if isinstance(rows, list):
        return rows[0] if rows else {}
    return rows or {}
