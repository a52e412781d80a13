"""Read-only access to the scraped_jobs table and metrics functions in Supabase"""
from typing import Any, Optional

from supabase import create_client, Client

from .config import CatalogConfig, Credentials, get_config, get_credentials
from .logger import get_logger

logger = get_logger()

# Stored procedures that pre-aggregate the dashboard metrics
BUDGET_ANALYSIS_FN = "get_budget_analysis"
SKILLS_DEMAND_FN = "get_skills_demand"
CLIENT_COUNTRIES_FN = "get_client_countries"
JOBS_OVER_TIME_FN = "get_jobs_over_time"
OVERALL_STATS_FN = "get_overall_stats"
TOTAL_JOB_COUNT_FN = "get_total_job_count"
TOTAL_COMPLETE_JOB_COUNT_FN = "get_total_complete_job_count"


class StoreError(Exception):
    """The record store is unreachable, misconfigured or rejected a query"""


def create_supabase_client(credentials: Optional[Credentials] = None) -> Client:
    credentials = credentials or get_credentials()
    url = credentials.supabase_url.strip()
    key = credentials.supabase_key.strip()
    if not url or not key:
        raise StoreError(
            "Missing Supabase credentials. Ensure SUPABASE_URL and SUPABASE_KEY "
            "are set in the environment or .env file."
        )
    return create_client(url, key)


class RecordStore:
    """Paged and unpaged queries over scraped jobs, newest extraction first"""

    def __init__(self, client: Optional[Client] = None, config: Optional[CatalogConfig] = None):
        self.config = config or get_config().catalog
        self.client = client or create_supabase_client()
        self.table = self.config.table

    def _ordered(self, query):
        # id breaks created_at ties so consecutive windows never overlap
        return query.order(self.config.order_column, desc=True).order("id", desc=True)

    def fetch_page(self, offset: int, limit: int) -> tuple[list[dict], Optional[int]]:
        """Fetch one window plus the exact total count in the same request"""
        end = offset + limit - 1
        try:
            resp = self._ordered(
                self.client.from_(self.table).select("*", count="exact")
            ).range(offset, end).execute()
        except Exception as e:
            logger.error(f"Error fetching jobs {offset}-{end}: {e!r}")
            raise StoreError(f"Failed to fetch jobs: {e}") from e

        rows = resp.data or []
        count = getattr(resp, "count", None)
        logger.debug(f"Fetched {len(rows)} jobs for range {offset}-{end} (count={count})")
        return rows, (int(count) if count is not None else None)

    def fetch_all(self, limit: Optional[int] = None) -> list[dict]:
        """
        Fetch every job (or the newest `limit`) for export.
        Reads in chunked ranges since the API caps rows per request.
        """
        chunk = self.config.export_chunk_size
        out: list[dict] = []
        start = 0
        while True:
            size = chunk if limit is None else min(chunk, limit - len(out))
            if size <= 0:
                break
            end = start + size - 1
            try:
                resp = self._ordered(
                    self.client.from_(self.table).select("*")
                ).range(start, end).execute()
            except Exception as e:
                logger.error(f"Error fetching data for export at {start}-{end}: {e!r}")
                raise StoreError(f"Failed to fetch data for export: {e}") from e

            rows = resp.data or []
            out.extend(rows)
            if len(rows) < size:
                break
            start += size

        logger.info(f"Fetched {len(out)} jobs for export")
        return out

    def fetch_client_activity(self) -> list[dict]:
        """Jobs that carry both a jobs-posted count and a total spend"""
        try:
            resp = self._ordered(
                self.client.from_(self.table)
                .select("id, client_jobs_posted, client_total_spent, client_location, created_at")
                .not_.is_("client_jobs_posted", "null")
                .not_.is_("client_total_spent", "null")
            ).execute()
        except Exception as e:
            logger.error(f"Error fetching client activity data: {e!r}")
            raise StoreError(f"Failed to fetch client activity data: {e}") from e
        return resp.data or []

    def fetch_by_id(self, record_id: int) -> Optional[dict]:
        try:
            resp = (
                self.client.from_(self.table)
                .select("*")
                .eq("id", record_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching job {record_id}: {e!r}")
            raise StoreError(f"Failed to fetch job {record_id}: {e}") from e
        rows = resp.data or []
        return rows[0] if rows else None

    def rpc(self, function_name: str) -> Any:
        """Call a stored procedure and return its rows unchanged"""
        try:
            resp = self.client.rpc(function_name).execute()
        except Exception as e:
            logger.error(f"Error calling {function_name}: {e!r}")
            raise StoreError(f"Failed to call {function_name}: {e}") from e
        return resp.data
