"""Fetch run orchestration across all enabled sources."""
import asyncio
import logging
from typing import List, Optional, Tuple

from pymongo.errors import PyMongoError

from database.repositories.run_log_repo import RunLogRepository
from database.repositories.source_repo import SourceRepository
from ingestion.processors import ProcessorRouter
from ingestion.publisher import RunEventPublisher
from shared.config import settings
from shared.errors import OrchestrationError, SourceDisabled, SourceNotFound
from shared.models import (
    OverallFetchRunResult,
    ProcessingSummary,
    RunStatus,
    SourceModel,
    SummaryStatus,
)
from shared.utils import generate_run_id, get_utc_now

logger = logging.getLogger(__name__)

NO_SOURCES_NOTE = "No enabled sources to process."


def compute_run_status(
    summaries: List[ProcessingSummary],
    orchestration_errors: List[str]
) -> RunStatus:
    """Overall run status from its source summaries and run-level errors."""
    if not summaries and orchestration_errors:
        return RunStatus.FAILED
    if orchestration_errors or any(s.status != SummaryStatus.SUCCESS for s in summaries):
        return RunStatus.COMPLETED_WITH_ERRORS
    return RunStatus.COMPLETED


def _last_error(summary: ProcessingSummary) -> Optional[str]:
    if summary.fetch_error:
        return summary.fetch_error
    if summary.errors:
        return f"{len(summary.errors)} item-level error(s)"
    return None


class FetchOrchestrator:
    """
    Runs source processors and aggregates their summaries.

    Sources are processed concurrently up to ``concurrency``, each under its
    own timeout. One source failing, timing out or raising never affects the
    others; it becomes a failed summary.
    """

    def __init__(
        self,
        source_repo: SourceRepository,
        run_log_repo: RunLogRepository,
        router: ProcessorRouter,
        publisher: Optional[RunEventPublisher] = None,
        concurrency: int = None,
        source_timeout: float = None
    ):
        self.source_repo = source_repo
        self.run_log_repo = run_log_repo
        self.router = router
        self.publisher = publisher
        self.concurrency = concurrency or settings.source_concurrency
        self.source_timeout = source_timeout or settings.source_timeout_seconds

    async def run_all(self) -> OverallFetchRunResult:
        """Process every enabled source and return the run result."""
        run_id = generate_run_id()
        start_time = get_utc_now()
        orchestration_errors: List[str] = []
        logger.info(f"Starting fetch run {run_id}")

        await self._create_run_log(run_id, start_time, orchestration_errors)

        sources: List[SourceModel] = []
        nothing_enabled = False
        try:
            sources, invalid_documents = await self.source_repo.list_enabled_sources()
        except Exception as e:
            error = OrchestrationError(f"Failed to list enabled sources: {e}")
            logger.exception(str(error))
            orchestration_errors.append(str(error))
        else:
            orchestration_errors.extend(invalid_documents)
            nothing_enabled = not sources and not invalid_documents

        semaphore = asyncio.Semaphore(self.concurrency)
        outcomes = await asyncio.gather(
            *(self._run_source(run_id, source, semaphore) for source in sources)
        )

        summaries = [summary for summary, _ in outcomes]
        orchestration_errors.extend(error for _, error in outcomes if error)

        status = compute_run_status(summaries, orchestration_errors)
        if nothing_enabled:
            logger.info(NO_SOURCES_NOTE)
            orchestration_errors.append(NO_SOURCES_NOTE)

        result = OverallFetchRunResult(
            run_id=run_id,
            start_time=start_time,
            end_time=get_utc_now(),
            status=status,
            total_sources_attempted=len(summaries),
            total_sources_succeeded=sum(1 for s in summaries if s.status != SummaryStatus.FAILED),
            total_sources_failed=sum(1 for s in summaries if s.status == SummaryStatus.FAILED),
            total_new_articles=sum(s.new_items_added for s in summaries),
            detailed_summaries=summaries,
            orchestration_errors=orchestration_errors,
        )

        await self._finalize(result)
        logger.info(
            f"Fetch run {run_id} {result.status.value}: {result.total_sources_succeeded} succeeded, "
            f"{result.total_sources_failed} failed, {result.total_new_articles} new articles"
        )
        return result

    async def run_single(self, source_id: str) -> ProcessingSummary:
        """
        Process one source on demand.

        Raises:
            SourceNotFound: no source with this ID
            SourceDisabled: the source is disabled
        """
        source = await self.source_repo.get_source(source_id)
        if source is None:
            raise SourceNotFound(f"Source {source_id} not found")
        if not source.is_enabled:
            raise SourceDisabled(f"Source {source_id} is disabled")

        run_id = generate_run_id()
        start_time = get_utc_now()
        orchestration_errors: List[str] = []
        await self._create_run_log(run_id, start_time, orchestration_errors)

        summary, error = await self._run_source(run_id, source, asyncio.Semaphore(1))
        if error:
            orchestration_errors.append(error)

        result = OverallFetchRunResult(
            run_id=run_id,
            start_time=start_time,
            end_time=get_utc_now(),
            status=compute_run_status([summary], orchestration_errors),
            total_sources_attempted=1,
            total_sources_succeeded=0 if summary.status == SummaryStatus.FAILED else 1,
            total_sources_failed=1 if summary.status == SummaryStatus.FAILED else 0,
            total_new_articles=summary.new_items_added,
            detailed_summaries=[summary],
            orchestration_errors=orchestration_errors,
        )
        await self._finalize(result)
        return summary

    async def _run_source(
        self,
        run_id: str,
        source: SourceModel,
        semaphore: asyncio.Semaphore
    ) -> Tuple[ProcessingSummary, Optional[str]]:
        async with semaphore:
            summary = await self._process_isolated(source)

        error = None
        try:
            await self.source_repo.update_source_last_run(
                source.id,
                summary.status.value,
                summary.message,
                error=_last_error(summary),
                timestamp=get_utc_now(),
            )
        except PyMongoError as e:
            error = str(OrchestrationError(f"Failed to update last run for {source.name}: {e}"))
            logger.error(error)

        if self.publisher is not None:
            await self.publisher.publish_source_processed(run_id, summary)
        return summary, error

    async def _process_isolated(self, source: SourceModel) -> ProcessingSummary:
        try:
            return await asyncio.wait_for(self.router.process(source), timeout=self.source_timeout)
        except asyncio.TimeoutError:
            summary = ProcessingSummary.for_source(source)
            summary.fetch_error = f"Timed out after {self.source_timeout} seconds"
            summary.message = f"Failed to process source: {summary.fetch_error}"
            logger.error(f"{source.name}: {summary.fetch_error}")
            return summary
        except Exception as e:
            logger.exception(f"Unexpected error processing {source.name}")
            summary = ProcessingSummary.for_source(source)
            summary.fetch_error = str(e) or e.__class__.__name__
            summary.message = f"Failed to process source: {summary.fetch_error}"
            return summary

    async def _create_run_log(self, run_id, start_time, orchestration_errors: List[str]):
        try:
            await self.run_log_repo.create_run_log(run_id, start_time)
        except PyMongoError as e:
            error = f"Failed to create run log: {e}"
            logger.error(error)
            orchestration_errors.append(error)

    async def _finalize(self, result: OverallFetchRunResult):
        try:
            await self.run_log_repo.finalize_run_log(result)
        except PyMongoError as e:
            logger.error(f"Failed to finalize run log {result.run_id}: {e}")

        if self.publisher is not None:
            await self.publisher.publish_run_completed(result)
