"""
Shared fixtures: an in-memory record store and sample scraped jobs.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from job_catalog.config import AppConfig
from job_catalog.store import StoreError

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_jobs(count: int) -> list[dict]:
    """Rows newest first, as the store orders them."""
    levels = ("Entry level", "Intermediate", "Expert")
    return [
        {
            "id": count - i,
            "title": f"Job {count - i}",
            "description": f"Description for job {count - i}",
            "created_at": (BASE_TIME - timedelta(hours=i)).isoformat(),
            "experience_level": levels[i % 3],
            "skills": ["Python", "SQL"],
            "budget_amount": "$500",
            "budget_type": "Fixed",
        }
        for i in range(count)
    ]


class FakeStore:
    """Same call surface as RecordStore, backed by a list of rows."""

    def __init__(self, rows: Optional[list[dict]] = None, rpc_results: Optional[dict] = None):
        self.rows = list(rows or [])
        self.rpc_results = dict(rpc_results or {})
        self.fail = False
        self.page_calls: list[tuple[int, int]] = []

    def _check(self):
        if self.fail:
            raise StoreError("store unreachable")

    def fetch_page(self, offset: int, limit: int):
        self._check()
        self.page_calls.append((offset, limit))
        return [dict(row) for row in self.rows[offset:offset + limit]], len(self.rows)

    def fetch_all(self, limit: Optional[int] = None):
        self._check()
        rows = self.rows if limit is None else self.rows[:limit]
        return [dict(row) for row in rows]

    def fetch_client_activity(self):
        self._check()
        return [
            dict(row) for row in self.rows
            if row.get("client_jobs_posted") is not None and row.get("client_total_spent") is not None
        ]

    def fetch_by_id(self, record_id: int):
        self._check()
        for row in self.rows:
            if row.get("id") == record_id:
                return dict(row)
        return None

    def rpc(self, function_name: str):
        self._check()
        return self.rpc_results.get(function_name, [])


@pytest.fixture
def app_config():
    """Defaults, independent of config/config.yaml."""
    return AppConfig()


@pytest.fixture
def jobs_250():
    return make_jobs(250)


@pytest.fixture
def store_250(jobs_250):
    return FakeStore(jobs_250)


@pytest.fixture
def sample_record_data():
    return {
        "id": 7,
        "title": "Build a React dashboard",
        "description": "Need charts for sales data",
        "budget_amount": "$1,200",
        "budget_type": "Fixed",
        "experience_level": "Intermediate",
        "project_type": "Complex project",
        "skills": '["React","Node.js"]',
        "location": "Worldwide",
        "client_location": "Germany",
        "created_at": "2024-05-01T09:00:00Z",
    }
