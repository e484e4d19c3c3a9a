"""Wiring of the ingestion components for a process."""
import logging
from dataclasses import dataclass
from typing import Optional

import redis.asyncio as redis
from motor.motor_asyncio import AsyncIOMotorDatabase

from database.repositories.article_repo import ArticleRepository
from database.repositories.run_log_repo import RunLogRepository
from database.repositories.source_repo import SourceRepository
from ingestion.deduplication import DeduplicationService
from ingestion.orchestrator import FetchOrchestrator
from ingestion.processors import HTMLProcessor, ProcessorRouter, RSSProcessor
from ingestion.profiles import ProfileStore
from ingestion.publisher import RunEventPublisher
from ingestion.scraper import BrowserPool, HttpClient, LightweightScraper, RenderedScraper
from ingestion.strategy import ScraperSelector
from shared.config import settings
from shared.models import SourceType

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    """Long-lived ingestion components and the resources they own."""
    orchestrator: FetchOrchestrator
    profile_store: ProfileStore
    http_client: HttpClient
    browser_pool: BrowserPool

    async def close(self):
        """Release the HTTP session and the headless browser."""
        await self.http_client.close()
        await self.browser_pool.close()
        logger.info("Ingestion pipeline closed")


def build_pipeline(
    db: AsyncIOMotorDatabase,
    redis_client: Optional[redis.Redis] = None,
    profile_store: Optional[ProfileStore] = None,
    browser_pool: Optional[BrowserPool] = None
) -> Pipeline:
    """Build the orchestrator and its collaborators."""
    profile_store = profile_store or ProfileStore()
    browser_pool = browser_pool or BrowserPool()
    http_client = HttpClient()

    deduplicator = DeduplicationService(ArticleRepository(db))
    selector = ScraperSelector(
        lightweight=LightweightScraper(http_client),
        rendered=RenderedScraper(browser_pool),
    )
    router = ProcessorRouter({
        SourceType.RSS: RSSProcessor(http_client, deduplicator, profile_store),
        SourceType.HTML: HTMLProcessor(selector, deduplicator, profile_store),
    })

    publisher = None
    if settings.publish_events and redis_client is not None:
        publisher = RunEventPublisher(redis_client)

    orchestrator = FetchOrchestrator(
        source_repo=SourceRepository(db),
        run_log_repo=RunLogRepository(db),
        router=router,
        publisher=publisher,
    )
    return Pipeline(
        orchestrator=orchestrator,
        profile_store=profile_store,
        http_client=http_client,
        browser_pool=browser_pool,
    )
