"""Server-side pagination over the record store"""
import asyncio
from typing import Optional

from pydantic import ValidationError

from .models import JobRecord, PageOutcome, PageWindow
from .store import StoreError
from .logger import get_logger

logger = get_logger()

DEFAULT_PAGE_SIZE = 100


class PaginationCoordinator:
    """
    Owns the current page window and the records shown for it.

    Loads are non-blocking: the synchronous store call runs in a worker
    thread. The most recent request wins; a load that completes after a
    newer one was issued is dropped. A failed load leaves the previously
    shown page in place.
    """

    def __init__(self, store, page_size: int = DEFAULT_PAGE_SIZE, total_count: Optional[int] = None):
        self.store = store
        self.window = PageWindow(page_size=page_size, total_count=total_count or 0)
        self.records: list[JobRecord] = []
        self.total_known = total_count is not None
        self.loaded = False
        self.last_error: Optional[str] = None
        self._seq = 0

    @property
    def page_count(self) -> int:
        return self.window.page_count

    def _target(self, page_number: int) -> PageWindow:
        if self.total_known:
            return self.window.go_to(page_number)
        # Without a total yet, trust the requested page and clamp once the count arrives
        return self.window.model_copy(update={"page_number": max(1, page_number)})

    async def _fetch(self, window: PageWindow) -> tuple[list[JobRecord], Optional[int]]:
        rows, count = await asyncio.to_thread(self.store.fetch_page, window.offset, window.page_size)
        return [JobRecord(**row) for row in rows], count

    async def load(self, page_number: Optional[int] = None) -> PageOutcome:
        """Fetch a page (the current one by default) and make it current on success"""
        target = self._target(self.window.page_number if page_number is None else page_number)

        self._seq += 1
        seq = self._seq
        logger.debug(f"Loading page {target.page_number} (offset={target.offset}, request={seq})")

        try:
            records, count = await self._fetch(target)
            if count is not None:
                clamped = target.with_total(count)
                if clamped.page_number != target.page_number:
                    logger.info(f"Page {target.page_number} is past the last page, loading page {clamped.page_number}")
                    records, count = await self._fetch(clamped)
                    if count is not None:
                        clamped = clamped.with_total(count)
                target = clamped
        except (StoreError, ValidationError) as e:
            if seq != self._seq:
                return PageOutcome(ok=False, window=self.window, error=str(e), stale=True)
            self.last_error = str(e)
            logger.error(f"Failed to load page {target.page_number}: {e}")
            return PageOutcome(ok=False, window=self.window, record_count=len(self.records), error=str(e))

        if seq != self._seq:
            logger.debug(f"Discarding page {target.page_number} (request {seq} superseded by {self._seq})")
            return PageOutcome(ok=True, window=target, record_count=len(records), stale=True)

        # The count from this response supersedes any earlier total
        self.window = target
        self.records = records
        self.total_known = self.total_known or count is not None
        self.loaded = True
        self.last_error = None
        logger.info(
            f"Loaded page {target.page_number} of {target.last_page} "
            f"({len(records)} jobs, total {target.total_count})"
        )
        return PageOutcome(ok=True, window=target, record_count=len(records))

    async def _navigate(self, target: PageWindow) -> PageOutcome:
        if self.loaded and target.page_number == self.window.page_number:
            return PageOutcome(ok=True, window=self.window, record_count=len(self.records))
        return await self.load(target.page_number)

    async def go_to(self, page_number: int) -> PageOutcome:
        return await self._navigate(self._target(page_number))

    async def first(self) -> PageOutcome:
        return await self._navigate(self.window.first())

    async def prev(self) -> PageOutcome:
        return await self._navigate(self.window.prev())

    async def next(self) -> PageOutcome:
        return await self._navigate(self._target(self.window.page_number + 1))

    async def last(self) -> PageOutcome:
        return await self._navigate(self.window.last())

    def summary(self) -> str:
        return self.window.summary()

    def showing(self) -> str:
        return f"Showing {len(self.records)} jobs (Page {self.window.page_number} of {self.window.last_page})"
