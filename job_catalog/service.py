"""Catalog session: paging, filtering, presentation, metrics, export and proposals"""
import asyncio
from datetime import datetime
from typing import Optional, Union

from .ai_engine import AIEngine
from .config import AppConfig, get_config
from .export import export_records
from .filters import filter_page
from .metrics import (
    present_budget_ranges,
    present_client_countries,
    present_jobs_over_time,
    present_overall_stats,
    present_skills_demand,
)
from .models import FilterState, JobRecord, JobRow, PageOutcome, ProposalOutcome
from .normalize import format_budget, normalize_skills, parse_count
from .pagination import PaginationCoordinator
from .proposal import ProposalOrchestrator
from .relative_time import format_relative_time
from .store import (
    BUDGET_ANALYSIS_FN,
    CLIENT_COUNTRIES_FN,
    JOBS_OVER_TIME_FN,
    OVERALL_STATS_FN,
    SKILLS_DEMAND_FN,
    TOTAL_COMPLETE_JOB_COUNT_FN,
    TOTAL_JOB_COUNT_FN,
    RecordStore,
)
from .tiers import classify, client_activity_points, summarize
from .logger import get_logger

logger = get_logger()

EXPERIENCE_COLORS = {
    "entry level": "success",
    "intermediate": "warning",
    "expert": "error",
}
PROJECT_TYPE_COLORS = {
    "complex project": "error",
    "simple project": "success",
}

# metric name -> (stored procedure, presenter)
METRICS = {
    "budget-analysis": (BUDGET_ANALYSIS_FN, present_budget_ranges),
    "skills-demand": (SKILLS_DEMAND_FN, present_skills_demand),
    "client-countries": (CLIENT_COUNTRIES_FN, present_client_countries),
    "jobs-over-time": (JOBS_OVER_TIME_FN, present_jobs_over_time),
    "overall-stats": (OVERALL_STATS_FN, present_overall_stats),
}


def experience_color(level: Optional[str]) -> str:
    return EXPERIENCE_COLORS.get((level or "").lower(), "default")


def project_type_color(project_type: Optional[str]) -> str:
    return PROJECT_TYPE_COLORS.get((project_type or "").lower(), "info")


def present(record: JobRecord, now: Optional[datetime] = None) -> JobRow:
    """Build the display row for a job card"""
    return JobRow(
        id=record.id,
        title=record.title or "Untitled",
        job_url=record.job_url,
        description=record.description,
        skills=normalize_skills(record.skills),
        budget=format_budget(record.budget_amount, record.budget_type),
        experience_level=record.experience_level,
        experience_color=experience_color(record.experience_level),
        project_type=record.project_type,
        project_type_color=project_type_color(record.project_type),
        extracted=format_relative_time(record.created_at, now=now),
        client_location=record.client_location,
        client_rating=record.client_rating,
        proposals_count=record.proposals_count,
    )


class CatalogService:
    """One browsing session over the scraped job catalog"""

    def __init__(
        self,
        store=None,
        config: Optional[AppConfig] = None,
        engine: Optional[AIEngine] = None,
        total_count: Optional[int] = None,
    ):
        self.config = config or get_config()
        self.store = store or RecordStore(config=self.config.catalog)
        self.pagination = PaginationCoordinator(
            self.store,
            page_size=self.config.catalog.page_size,
            total_count=total_count,
        )
        self.filter_state = FilterState()
        self._engine = engine
        self._proposals: Optional[ProposalOrchestrator] = None

    @property
    def proposals(self) -> ProposalOrchestrator:
        # Built lazily so browsing works without an OpenAI key
        if self._proposals is None:
            self._proposals = ProposalOrchestrator(self._engine, ai_config=self.config.ai)
        return self._proposals

    # ------------------------------------------------------------------
    # Paging and filtering
    # ------------------------------------------------------------------
    async def open_page(self, page_number: int = 1) -> PageOutcome:
        return await self.pagination.go_to(page_number)

    def set_filter(self, search_term: Optional[str] = None, category_filter: Optional[str] = None) -> FilterState:
        updates = {}
        if search_term is not None:
            updates["search_term"] = search_term
        if category_filter is not None:
            updates["category_filter"] = category_filter or "all"
        self.filter_state = self.filter_state.model_copy(update=updates)
        return self.filter_state

    def view(self, now: Optional[datetime] = None) -> dict:
        """Current page narrowed by the filter state, ready to render"""
        window = self.pagination.window
        filtered = filter_page(self.pagination.records, self.filter_state)
        return {
            "jobs": [present(record, now=now).model_dump() for record in filtered.records],
            "filter": self.filter_state.model_dump(),
            "visible_count": filtered.visible_count,
            "page_job_count": filtered.fetched_count,
            "page": window.page_number,
            "page_size": window.page_size,
            "page_count": window.page_count,
            "total": window.total_count,
            "offset": window.offset,
            "has_prev": window.has_prev,
            "has_next": window.has_next,
            "filter_summary": filtered.summary,
            "page_summary": window.summary(),
            "showing": self.pagination.showing(),
            "error": self.pagination.last_error,
        }

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------
    async def metric(self, name: str):
        """Fetch one pre-aggregated metric and re-label its rows"""
        if name not in METRICS:
            raise KeyError(name)
        function_name, presenter = METRICS[name]
        rows = await asyncio.to_thread(self.store.rpc, function_name)
        return presenter(rows)

    async def total_count(self) -> dict:
        total, complete = await asyncio.gather(
            asyncio.to_thread(self.store.rpc, TOTAL_JOB_COUNT_FN),
            asyncio.to_thread(self.store.rpc, TOTAL_COMPLETE_JOB_COUNT_FN),
        )
        return {"total": parse_count(total), "complete": parse_count(complete)}

    async def client_activity(self) -> dict:
        rows = await asyncio.to_thread(self.store.fetch_client_activity)
        points = client_activity_points(JobRecord(**row) for row in rows)
        classified = classify(points)
        return {
            "clients": [point.model_dump() for point in classified],
            "legend": summarize(classified),
            "total_clients": len(classified),
        }

    # ------------------------------------------------------------------
    # Export and proposals
    # ------------------------------------------------------------------
    async def export(self, fmt: str = "json", limit: Optional[int] = None) -> bytes:
        if limit is not None and limit <= 0:
            limit = None
        rows = await asyncio.to_thread(self.store.fetch_all, limit)
        return export_records(rows, fmt)

    async def find(self, record_id: int) -> Optional[JobRecord]:
        for record in self.pagination.records:
            if record.id == record_id:
                return record
        row = await asyncio.to_thread(self.store.fetch_by_id, record_id)
        return JobRecord(**row) if row else None

    async def propose(self, record: Union[JobRecord, dict]) -> ProposalOutcome:
        if isinstance(record, dict):
            record = JobRecord(**record)
        return await self.proposals.request(record)
