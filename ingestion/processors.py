"""Per-source processing: fetch, extract, write and summarize."""
import logging
import time
from typing import Dict, Optional

from ingestion.deduplication import DeduplicationService
from ingestion.profiles import ProfileStore
from ingestion.rss_extractor import RSSExtractor
from ingestion.scraper import HttpClient, raise_for_status
from ingestion.strategy import ScraperSelector
from shared.errors import ConfigError, FetchError
from shared.models import (
    ExtractionResult,
    ItemError,
    ProcessingSummary,
    SourceModel,
    SourceType,
    SummaryStatus,
    WriteAction,
)

logger = logging.getLogger(__name__)


def _limit_message(summary: ProcessingSummary, max_articles: Optional[int]) -> str:
    if max_articles and summary.items_found > max_articles:
        return f" (limited to first {summary.items_considered} of {summary.items_found} found)"
    return ""


def _stats_message(summary: ProcessingSummary, max_articles: Optional[int], verb: str = "Processed") -> str:
    label = "items" if summary.type == SourceType.RSS else "articles"
    return (
        f"{verb} {summary.items_processed} {label}{_limit_message(summary, max_articles)}. "
        f"Added: {summary.new_items_added}, Skipped: {summary.items_skipped}."
    )


def set_processing_status(summary: ProcessingSummary, max_articles: Optional[int] = None):
    """Set the final status and message once all candidates are written."""
    stats = _stats_message(summary, max_articles)
    succeeded = summary.new_items_added + summary.items_skipped

    if summary.errors and succeeded == 0:
        summary.status = SummaryStatus.FAILED
        summary.message = f"All {len(summary.errors)} items failed. {stats}"
    elif summary.errors:
        summary.status = SummaryStatus.PARTIAL_SUCCESS
        summary.message = f"Completed with {len(summary.errors)} errors. {stats}"
    elif summary.items_found == 0:
        summary.status = SummaryStatus.SUCCESS
        if summary.type == SourceType.RSS:
            summary.message = "No items found in RSS feed."
        else:
            summary.message = "No articles found on website."
    elif summary.items_considered == 0:
        summary.status = SummaryStatus.SUCCESS
        summary.message = (
            f"Found {summary.items_found} items, but 0 considered after limit "
            f"(or limit was 0). No items processed."
        )
    else:
        summary.status = SummaryStatus.SUCCESS
        summary.message = f"Successfully {_stats_message(summary, max_articles, verb='processed')}"


def set_failed_status(summary: ProcessingSummary, error: Exception):
    """Mark a summary failed because of a source-level error."""
    label = summary.type.value.upper() if summary.type else "source"
    summary.status = SummaryStatus.FAILED
    summary.fetch_error = str(error) or error.__class__.__name__
    summary.message = f"Failed to process {label} source: {summary.fetch_error}"


class BaseProcessor:
    """Writes extracted candidates and fills in the summary counters."""

    def __init__(self, deduplicator: DeduplicationService):
        self.deduplicator = deduplicator

    async def _write_candidates(
        self,
        result: ExtractionResult,
        source: SourceModel,
        summary: ProcessingSummary
    ):
        summary.items_found = result.items_found
        summary.items_considered = result.items_considered
        summary.errors.extend(result.errors)

        for candidate in result.candidates:
            summary.items_processed += 1
            outcome = await self.deduplicator.process(candidate, source.name)

            if outcome.action == WriteAction.ADDED:
                summary.new_items_added += 1
            elif outcome.action == WriteAction.SKIPPED:
                summary.items_skipped += 1
            else:
                summary.errors.append(ItemError(
                    kind="persistence",
                    message=outcome.error or "Unknown database error",
                    item_title=candidate.title or None,
                    item_link=candidate.url,
                ))

    async def process(self, source: SourceModel) -> ProcessingSummary:
        summary = ProcessingSummary.for_source(source)
        started = time.monotonic()
        try:
            await self._process(source, summary)
        except (ConfigError, FetchError) as e:
            logger.error(f"Source {source.name} failed: {e}")
            set_failed_status(summary, e)
        finally:
            summary.duration_ms = int((time.monotonic() - started) * 1000)

        logger.info(f"{source.name}: {summary.status.value} - {summary.message}")
        return summary

    async def _process(self, source: SourceModel, summary: ProcessingSummary):
        raise NotImplementedError


class RSSProcessor(BaseProcessor):
    """Processes RSS and Atom feed sources."""

    def __init__(
        self,
        http_client: HttpClient,
        deduplicator: DeduplicationService,
        profile_store: ProfileStore,
        extractor: Optional[RSSExtractor] = None
    ):
        super().__init__(deduplicator)
        self.http_client = http_client
        self.profile_store = profile_store
        self.extractor = extractor or RSSExtractor()

    async def _process(self, source: SourceModel, summary: ProcessingSummary):
        status, body = await self.http_client.get(source.url)
        raise_for_status(status, source.url)

        max_articles = self.profile_store.defaults.max_articles
        result = self.extractor.extract(body, source, max_items=max_articles)
        await self._write_candidates(result, source, summary)
        set_processing_status(summary, max_articles)


class HTMLProcessor(BaseProcessor):
    """Processes HTML listing pages through the scraper selector."""

    def __init__(
        self,
        selector: ScraperSelector,
        deduplicator: DeduplicationService,
        profile_store: ProfileStore
    ):
        super().__init__(deduplicator)
        self.selector = selector
        self.profile_store = profile_store

    async def _process(self, source: SourceModel, summary: ProcessingSummary):
        profile = self.profile_store.resolve(source)
        outcome = await self.selector.scrape(source, profile)
        summary.strategy = outcome.strategy

        await self._write_candidates(outcome.result, source, summary)
        set_processing_status(summary, profile.max_articles)


class ProcessorRouter:
    """Dispatches a source to the processor for its type."""

    def __init__(self, processors: Dict[SourceType, BaseProcessor]):
        self.processors = dict(processors)

    async def process(self, source: SourceModel) -> ProcessingSummary:
        processor = self.processors.get(source.type)
        if processor is None:
            summary = ProcessingSummary.for_source(source)
            summary.status = SummaryStatus.FAILED
            summary.fetch_error = f"Unsupported source type: {source.type}"
            summary.message = summary.fetch_error
            logger.error(f"{source.name}: {summary.fetch_error}")
            return summary
        return await processor.process(source)
