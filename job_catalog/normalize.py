"""Normalization of loosely typed scraped_jobs columns"""
import json
import re
from datetime import datetime, timezone
from typing import Any, Optional

from .logger import get_logger

logger = get_logger()

# "$5,000+", "5,000", "$120" -> first run of digits/commas
_CURRENCY_RE = re.compile(r"\$?([\d,]+)")
_LEADING_INT_RE = re.compile(r"^\s*[+-]?(\d+)")


def normalize_skills(raw: Any) -> list[str]:
    """
    Turn the skills column into a list of strings.
    Handles:
    - ['Python', 'SQL']
    - '["Python","SQL"]'   (JSON text array)
    - "Python, SQL"
    - None, 0, False
    Never raises; anything unparseable becomes an empty list.
    """
    if not raw:
        return []

    if isinstance(raw, (list, tuple)):
        return [skill for skill in raw if isinstance(skill, str)]

    try:
        text = str(raw)
        if not text:
            return []

        if text.startswith("[") and text.endswith("]"):
            parsed = json.loads(text)
            if not isinstance(parsed, list):
                return []
            return [skill for skill in parsed if isinstance(skill, str)]

        return [skill.strip() for skill in text.split(",") if skill.strip()]
    except (ValueError, TypeError) as e:
        logger.warning(f"Could not parse skills {raw!r}: {e}")
        return []


def parse_currency_magnitude(raw: Any) -> int:
    """Read "$5,000+" style amounts as an integer; 0 means unknown"""
    if raw is None:
        return 0
    match = _CURRENCY_RE.search(str(raw))
    if not match:
        return 0
    digits = match.group(1).replace(",", "")
    if not digits:
        return 0
    return int(digits)


def parse_count(raw: Any) -> int:
    """Read the leading integer of a numeric-as-string count; 0 means unknown"""
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, (int, float)):
        return max(0, int(raw))
    match = _LEADING_INT_RE.match(str(raw))
    if not match:
        return 0
    return int(match.group(1))


def parse_timestamp(raw: Any) -> Optional[datetime]:
    """Parse ISO-ish timestamps into aware UTC datetimes; None if invalid"""
    if isinstance(raw, datetime):
        dt = raw
    else:
        if not raw:
            return None
        try:
            dt = datetime.fromisoformat(str(raw).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_budget(amount: Optional[str], budget_type: Optional[str] = None) -> str:
    if not amount:
        return "Not specified"
    if budget_type:
        return f"{amount} {budget_type}"
    return amount
