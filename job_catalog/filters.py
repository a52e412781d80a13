"""Search and experience-level filtering of the fetched page"""
from typing import Iterable, Optional

from .models import FilterState, FilteredPage, JobRecord
from .normalize import normalize_skills

ALL_LEVELS = "all"
EXPERIENCE_LEVELS = ("Entry level", "Intermediate", "Expert")


def _contains(value: Optional[str], term: str) -> bool:
    return bool(value) and term in value.lower()


def matches_search(record: JobRecord, search_term: str) -> bool:
    """Case-insensitive substring match on title, description, client location or skills"""
    # No search term includes every job, even ones without a title
    if not search_term:
        return True

    term = search_term.lower()
    return (
        _contains(record.title, term)
        or _contains(record.description, term)
        or _contains(record.client_location, term)
        or any(term in skill.lower() for skill in normalize_skills(record.skills))
    )


def matches_category(record: JobRecord, category_filter: str) -> bool:
    """Exact, case-sensitive experience level match"""
    return category_filter == ALL_LEVELS or record.experience_level == category_filter


def matches(record: JobRecord, filter_state: FilterState) -> bool:
    return (
        matches_search(record, filter_state.search_term)
        and matches_category(record, filter_state.category_filter)
    )


def filter_page(records: Iterable[JobRecord], filter_state: FilterState) -> FilteredPage:
    """Narrow the current page only; the store is not re-queried"""
    records = list(records)
    visible = [record for record in records if matches(record, filter_state)]
    return FilteredPage(
        records=visible,
        visible_count=len(visible),
        fetched_count=len(records),
    )
