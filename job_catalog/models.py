"""Data models for scraped Upwork jobs, catalog pages and proposals"""
import math
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Numeric-as-string columns arrive as "15", "10 to 15", 15 or null
LooseNumber = Optional[Union[str, int, float]]


class JobRecord(BaseModel):
    """One row of the scraped_jobs table.

    Columns are kept as loosely typed as the scraper writes them; the
    normalize module turns them into typed values. Columns not listed here
    are preserved so exports carry the full row.
    """
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    job_url: Optional[str] = None
    job_id: Optional[str] = None
    created_at: Optional[str] = None  # when the job was extracted
    updated_at: Optional[str] = None
    posted_date: Optional[str] = None  # deprecated, use created_at

    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    budget_amount: Optional[str] = None
    budget_type: Optional[str] = None
    experience_level: Optional[str] = None
    project_type: Optional[str] = None
    skills: Optional[Any] = None

    # Competition
    proposals_count: LooseNumber = None
    last_viewed_by_client: Optional[str] = None
    interviewing_count: LooseNumber = None
    invites_sent: LooseNumber = None
    unanswered_invites: LooseNumber = None
    connects_required: LooseNumber = None

    # Client info
    payment_method_verified: Optional[bool] = None
    client_rating: Optional[float] = None
    client_reviews_score: Optional[float] = None
    client_reviews_count: Optional[int] = None
    client_location: Optional[str] = None
    client_jobs_posted: LooseNumber = None
    client_total_spent: LooseNumber = None
    client_total_hires: LooseNumber = None
    client_active_hires: LooseNumber = None
    client_member_since: Optional[str] = None
    client_hire_rate: LooseNumber = None
    client_open_jobs: LooseNumber = None
    client_avg_hourly_rate: LooseNumber = None
    client_total_hours: LooseNumber = None
    client_industry: Optional[str] = None
    client_company_size: Optional[str] = None
    client_reviews: Optional[Any] = None
    client_review_job_links: Optional[Any] = None


class PageWindow(BaseModel):
    """A bounded slice of the ordered record set plus its exact total"""
    model_config = ConfigDict(frozen=True)

    page_number: int = Field(default=1, ge=1)
    page_size: int = Field(default=100, ge=1)
    total_count: int = Field(default=0, ge=0)

    @property
    def page_count(self) -> int:
        return math.ceil(self.total_count / self.page_size)

    @property
    def last_page(self) -> int:
        return max(1, self.page_count)

    @property
    def offset(self) -> int:
        return (self.page_number - 1) * self.page_size

    @property
    def has_prev(self) -> bool:
        return self.page_number > 1

    @property
    def has_next(self) -> bool:
        return self.page_number < self.last_page

    @property
    def first_item(self) -> int:
        return self.offset + 1 if self.total_count else 0

    @property
    def last_item(self) -> int:
        return min(self.page_number * self.page_size, self.total_count)

    def go_to(self, page_number: int) -> "PageWindow":
        target = min(max(1, page_number), self.last_page)
        if target == self.page_number:
            return self
        return self.model_copy(update={"page_number": target})

    def first(self) -> "PageWindow":
        return self.go_to(1)

    def prev(self) -> "PageWindow":
        return self.go_to(self.page_number - 1)

    def next(self) -> "PageWindow":
        return self.go_to(self.page_number + 1)

    def last(self) -> "PageWindow":
        return self.go_to(self.last_page)

    def with_total(self, total_count: int) -> "PageWindow":
        """Adopt a new authoritative total, clamping the page into range"""
        updated = self.model_copy(update={"total_count": max(0, total_count)})
        return updated.go_to(updated.page_number)

    def summary(self) -> str:
        return (
            f"Page {self.page_number} of {self.last_page} • "
            f"Showing jobs {self.first_item} to {self.last_item} of {self.total_count:,}"
        )


class FilterState(BaseModel):
    """Search box and experience-level dropdown for the current page"""
    search_term: str = ""
    category_filter: str = "all"


class JobRow(BaseModel):
    """Presentation-ready view of a job record"""
    id: Optional[int] = None
    title: str
    job_url: Optional[str] = None
    description: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    budget: str
    experience_level: Optional[str] = None
    experience_color: str = "default"
    project_type: Optional[str] = None
    project_type_color: str = "info"
    extracted: str
    client_location: Optional[str] = None
    client_rating: Optional[float] = None
    proposals_count: LooseNumber = None


class FilteredPage(BaseModel):
    """Result of narrowing the fetched page by a filter state"""
    records: list[JobRecord] = Field(default_factory=list)
    visible_count: int = 0
    fetched_count: int = 0

    @property
    def summary(self) -> str:
        return f"Showing {self.visible_count} of {self.fetched_count} jobs on this page"


class PageOutcome(BaseModel):
    """Typed result of a page load"""
    ok: bool
    window: PageWindow
    record_count: int = 0
    error: Optional[str] = None
    stale: bool = False  # superseded by a newer page request


class ActivityPoint(BaseModel):
    """A client's activity magnitudes taken from one job record"""
    client_id: str
    jobs_posted: int = Field(default=0, ge=0)
    total_spent: int = Field(default=0, ge=0)
    location: str = "Unknown"


class TierClassification(BaseModel):
    rank: int
    category: str
    color: str
    size: int


class ClassifiedPoint(ActivityPoint):
    tier: TierClassification


class ProposalState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class ProposalOutcome(BaseModel):
    """Snapshot of the proposal request lifecycle"""
    state: ProposalState = ProposalState.IDLE
    job_id: Optional[int] = None
    text: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None  # upstream status on error
    generated_at: Optional[datetime] = None
