"""Batch processing of recipe URLs.

URLs run in fixed-size groups. Inside a group every item runs concurrently
(staggered by ``index * stagger`` seconds); groups run strictly one after
another. Each task returns an ``ItemOutcome``; the orchestrator folds those
into the ``BatchResult`` after the group has settled, so the result only ever
has one writer.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from recipe_scraper.adapters.base import ExtractedRecord
from recipe_scraper.config import STAGGER_SECONDS
from recipe_scraper.errors import PersistenceError

logger = logging.getLogger(__name__)

ScrapeFn = Callable[[str], Awaitable[ExtractedRecord]]
SaveFn = Callable[[ExtractedRecord], Awaitable[Optional[str]]]


class Outcome(enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ItemOutcome:
    url: str
    outcome: Outcome
    message: str = ""


@dataclass
class BatchResult:
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.successful + self.failed + self.skipped

    def add(self, item: ItemOutcome) -> None:
        if item.outcome is Outcome.SUCCESS:
            self.successful += 1
            return
        if item.outcome is Outcome.FAILED:
            self.failed += 1
        else:
            self.skipped += 1
        if item.message:
            self.errors.append((item.url, item.message))


def partition(urls: Sequence[str], batch_size: int) -> List[List[str]]:
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    return [list(urls[i:i + batch_size]) for i in range(0, len(urls), batch_size)]


class BatchOrchestrator:
    def __init__(self, scrape: ScrapeFn, save: SaveFn, *, stagger: float = STAGGER_SECONDS):
        self.scrape = scrape
        self.save = save
        self.stagger = stagger

    async def _process(self, url: str, index: int, inter_item_delay: float) -> ItemOutcome:
        if index and self.stagger > 0:
            await asyncio.sleep(index * self.stagger)
        logger.info(f"Processing: {url}")
        try:
            record = await self.scrape(url)
            if record is None or not record.title:
                raise ValueError("Invalid recipe data extracted")
            recipe_id = await self.save(record)
        except PersistenceError as e:
            logger.warning(f"Store unavailable, skipping {url}: {e}")
            return ItemOutcome(url, Outcome.SKIPPED, str(e))
        except Exception as e:
            logger.error(f"Failed: {url} | {e}")
            return ItemOutcome(url, Outcome.FAILED, str(e))

        if not recipe_id:
            return ItemOutcome(url, Outcome.FAILED, f"Failed to save: {record.title}")

        logger.info(f"Saved: {record.title}")
        if inter_item_delay > 0:
            await asyncio.sleep(inter_item_delay)
        return ItemOutcome(url, Outcome.SUCCESS)

    @staticmethod
    def _cancelled(cancel_event: Optional[asyncio.Event], deadline: Optional[float]) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        return deadline is not None and asyncio.get_running_loop().time() >= deadline

    async def run(
        self,
        urls: Sequence[str],
        batch_size: int,
        inter_batch_delay: float,
        inter_item_delay: float,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> BatchResult:
        """
        Process ``urls`` and return the tally. ``deadline`` is in event-loop time
        (``loop.time()``). Once cancelled, no further group starts and every
        unlaunched URL is counted as skipped; running items finish normally.
        """
        result = BatchResult()
        groups = partition(urls, batch_size)
        total = len(groups)

        for number, group in enumerate(groups, start=1):
            if self._cancelled(cancel_event, deadline):
                remaining = sum(len(g) for g in groups[number - 1:])
                logger.warning(f"Run cancelled, {remaining} URLs left unprocessed")
                result.skipped += remaining
                break

            logger.info(f"Processing batch {number}/{total}")
            outcomes = await asyncio.gather(
                *(self._process(url, i, inter_item_delay) for i, url in enumerate(group)),
                return_exceptions=True,
            )
            for url, outcome in zip(group, outcomes):
                if isinstance(outcome, BaseException):
                    outcome = ItemOutcome(url, Outcome.FAILED, str(outcome) or type(outcome).__name__)
                result.add(outcome)

            if number < total and inter_batch_delay > 0:
                logger.info(f"Waiting {inter_batch_delay:g}s before next batch...")
                await asyncio.sleep(inter_batch_delay)

        return result
