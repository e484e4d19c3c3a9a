"""Choice between lightweight and rendered retrieval for HTML sources."""
import logging
from dataclasses import dataclass
from typing import Optional

from ingestion.html_extractor import HTMLExtractor
from ingestion.profiles import ScrapingProfile
from ingestion.scraper import LightweightScraper, RenderedScraper
from shared.errors import FetchError
from shared.models import ExtractionResult, ScrapeStrategy, SourceModel

logger = logging.getLogger(__name__)


@dataclass
class ScrapeOutcome:
    """Extraction result plus the strategy that produced it."""
    strategy: ScrapeStrategy
    result: ExtractionResult
    escalation_reason: Optional[str] = None


class ScraperSelector:
    """
    Runs the lightweight fetch first and escalates to rendering when needed.

    Escalation happens when the lightweight fetch fails, when its page has no
    article containers, or straight away when the profile requires rendering.
    It never goes back: a rendered failure fails the source.
    """

    def __init__(
        self,
        lightweight: LightweightScraper,
        rendered: Optional[RenderedScraper],
        extractor: Optional[HTMLExtractor] = None
    ):
        self.lightweight = lightweight
        self.rendered = rendered
        self.extractor = extractor or HTMLExtractor()

    async def scrape(self, source: SourceModel, profile: ScrapingProfile) -> ScrapeOutcome:
        """
        Fetch and extract a source's listing page.

        Raises:
            FetchError: rendered retrieval failed, or found no containers
        """
        if profile.requires_rendering:
            logger.info(f"Using rendered scraper for {source.name} ({profile.website_id}): rendering required")
            return await self._scrape_rendered(source, profile, "rendering required")

        reason = None
        try:
            html = await self.lightweight.fetch(source.url)
        except FetchError as e:
            logger.warning(f"Lightweight fetch failed for {source.name}: {e}")
            reason = f"lightweight fetch failed: {e}"
        else:
            result = self.extractor.extract(html, profile, source)
            if result.items_found > 0:
                return ScrapeOutcome(strategy=ScrapeStrategy.LIGHTWEIGHT, result=result)
            logger.info(f"Lightweight fetch of {source.name} found no articles, trying rendered scraper")
            reason = "no articles found by lightweight fetch"

        return await self._scrape_rendered(source, profile, reason)

    async def _scrape_rendered(
        self,
        source: SourceModel,
        profile: ScrapingProfile,
        reason: str
    ) -> ScrapeOutcome:
        if self.rendered is None:
            raise FetchError(f"Rendered scraping unavailable ({reason})", url=source.url)

        html = await self.rendered.fetch(source.url, wait_selector=profile.wait_for_selector)
        result = self.extractor.extract(html, profile, source)
        if result.items_found == 0:
            raise FetchError(
                f"No articles found after rendering with selector '{profile.article_selector}'",
                url=source.url,
            )

        logger.info(f"Rendered scraper found {result.items_found} articles for {source.name}")
        return ScrapeOutcome(
            strategy=ScrapeStrategy.RENDERED,
            result=result,
            escalation_reason=reason,
        )
