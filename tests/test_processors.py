"""Source processor tests."""
import pytest
from unittest.mock import AsyncMock, MagicMock

from ingestion.processors import (
    HTMLProcessor,
    ProcessorRouter,
    RSSProcessor,
    set_processing_status,
)
from ingestion.profiles import ProfileStore, ScrapingProfile
from ingestion.strategy import ScraperSelector
from shared.errors import FetchError
from shared.models import (
    ArticleModel,
    ProcessingSummary,
    ScrapeStrategy,
    SourceModel,
    SourceType,
    SummaryStatus,
)
from shared.utils import generate_article_id, get_utc_now, normalize_url


def http_client_returning(status: int, body: str):
    client = MagicMock()
    client.get = AsyncMock(return_value=(status, body))
    return client


def lightweight_returning(html: str):
    lightweight = MagicMock()
    lightweight.fetch = AsyncMock(return_value=html)
    return lightweight


def assert_counters_consistent(summary: ProcessingSummary):
    assert summary.new_items_added + summary.items_skipped <= summary.items_processed
    assert summary.items_processed <= summary.items_considered <= summary.items_found


async def seed(article_repo, source_name: str, url: str):
    now = get_utc_now()
    await article_repo.insert_article(ArticleModel(
        _id=generate_article_id(),
        title="Already here",
        url=url,
        identity_key=normalize_url(url),
        source_name=source_name,
        source_url="https://blog.example.com/posts",
        fetched_at=now,
        created_at=now,
        updated_at=now,
    ))


class TestRSSProcessor:
    """Tests for RSSProcessor."""

    @pytest.mark.asyncio
    async def test_feed_with_unidentifiable_entry(self, deduplicator, profile_store, rss_source, sample_feed):
        processor = RSSProcessor(http_client_returning(200, sample_feed), deduplicator, profile_store)

        summary = await processor.process(rss_source)

        assert summary.items_found == 2
        assert summary.items_processed == 1
        assert summary.new_items_added == 1
        assert len(summary.errors) == 1
        assert summary.errors[0].kind == "extraction"
        assert summary.status == SummaryStatus.PARTIAL_SUCCESS
        assert summary.message.startswith("Completed with 1 errors.")
        assert_counters_consistent(summary)

    @pytest.mark.asyncio
    async def test_rerun_is_idempotent(self, deduplicator, profile_store, rss_source, sample_feed, article_repo):
        processor = RSSProcessor(http_client_returning(200, sample_feed), deduplicator, profile_store)

        await processor.process(rss_source)
        second = await processor.process(rss_source)

        assert second.new_items_added == 0
        assert second.items_skipped == 1
        assert len(article_repo.articles) == 1

    @pytest.mark.asyncio
    async def test_http_error_fails_source(self, deduplicator, profile_store, rss_source):
        processor = RSSProcessor(http_client_returning(404, ""), deduplicator, profile_store)

        summary = await processor.process(rss_source)

        assert summary.status == SummaryStatus.FAILED
        assert summary.fetch_error == "404 Not Found"
        assert summary.message == "Failed to process RSS source: 404 Not Found"

    @pytest.mark.asyncio
    async def test_network_error_fails_source(self, deduplicator, profile_store, rss_source):
        client = MagicMock()
        client.get = AsyncMock(side_effect=FetchError("Timeout after 15 seconds"))
        processor = RSSProcessor(client, deduplicator, profile_store)

        summary = await processor.process(rss_source)

        assert summary.status == SummaryStatus.FAILED
        assert "Timeout" in summary.fetch_error
        assert summary.duration_ms is not None


class TestHTMLProcessor:
    """Tests for HTMLProcessor."""

    def make_processor(self, html, deduplicator, profile_store, rendered=None):
        selector = ScraperSelector(lightweight_returning(html), rendered)
        return HTMLProcessor(selector, deduplicator, profile_store)

    @pytest.mark.asyncio
    async def test_ten_posts_three_known(self, deduplicator, profile_store, html_source, listing_html, article_repo):
        for i in (2, 5, 9):
            await seed(article_repo, html_source.name, f"https://blog.example.com/posts/{i}")
        processor = self.make_processor(listing_html, deduplicator, profile_store)

        summary = await processor.process(html_source)

        assert summary.items_found == 10
        assert summary.items_processed == 10
        assert summary.new_items_added == 7
        assert summary.items_skipped == 3
        assert summary.status == SummaryStatus.SUCCESS
        assert summary.strategy == ScrapeStrategy.LIGHTWEIGHT
        assert summary.message == "Successfully processed 10 articles. Added: 7, Skipped: 3."
        assert_counters_consistent(summary)

    @pytest.mark.asyncio
    async def test_cap_applied_before_dedup(self, deduplicator, html_source, make_listing):
        store = ProfileStore(defaults=ScrapingProfile(max_articles=5))
        processor = self.make_processor(make_listing(8), deduplicator, store)

        summary = await processor.process(html_source)

        assert summary.items_found == 8
        assert summary.items_considered == 5
        assert summary.items_processed == 5
        assert "(limited to first 5 of 8 found)" in summary.message
        assert_counters_consistent(summary)

    @pytest.mark.asyncio
    async def test_unknown_profile_fails_source(self, deduplicator, profile_store):
        source = SourceModel(
            id="src_bad",
            name="Bad",
            url="https://bad.example.com",
            type=SourceType.HTML,
            website_id="missing-profile"
        )
        processor = self.make_processor("", deduplicator, profile_store)

        summary = await processor.process(source)

        assert summary.status == SummaryStatus.FAILED
        assert "missing-profile" in summary.fetch_error

    @pytest.mark.asyncio
    async def test_all_candidates_failing_is_failed_without_fetch_error(self, deduplicator, profile_store, html_source):
        html = """
        <div class="post"><h2>A</h2><a href="/a">a</a><time>not a date</time></div>
        <div class="post"><h2>B</h2><a href="/b">b</a><time>never</time></div>
        """
        processor = self.make_processor(html, deduplicator, profile_store)

        summary = await processor.process(html_source)

        assert summary.status == SummaryStatus.FAILED
        assert summary.fetch_error is None
        assert len(summary.errors) == 2

    @pytest.mark.asyncio
    async def test_no_articles_after_rendering(self, deduplicator, profile_store, html_source):
        rendered = MagicMock()
        rendered.fetch = AsyncMock(return_value="<html><body></body></html>")
        processor = self.make_processor("<html></html>", deduplicator, profile_store, rendered)

        summary = await processor.process(html_source)

        assert summary.status == SummaryStatus.FAILED
        assert "No articles found after rendering" in summary.fetch_error


class TestProcessingStatus:
    """Tests for set_processing_status."""

    def summary(self, **kwargs) -> ProcessingSummary:
        data = {"source_name": "S", "source_url": "https://s.example.com", "type": SourceType.RSS}
        data.update(kwargs)
        return ProcessingSummary(**data)

    def test_empty_feed_is_success(self):
        summary = self.summary()
        set_processing_status(summary)
        assert summary.status == SummaryStatus.SUCCESS
        assert summary.message == "No items found in RSS feed."

    def test_empty_website_is_success(self):
        summary = self.summary(type=SourceType.HTML)
        set_processing_status(summary)
        assert summary.message == "No articles found on website."

    def test_limit_message(self):
        summary = self.summary(items_found=30, items_considered=20, items_processed=20, new_items_added=20)
        set_processing_status(summary, max_articles=20)
        assert summary.message == (
            "Successfully processed 20 items (limited to first 20 of 30 found). Added: 20, Skipped: 0."
        )


class TestProcessorRouter:
    """Tests for ProcessorRouter."""

    @pytest.mark.asyncio
    async def test_dispatches_by_type(self, rss_source):
        rss = MagicMock()
        rss.process = AsyncMock(return_value="rss-summary")
        router = ProcessorRouter({SourceType.RSS: rss})

        assert await router.process(rss_source) == "rss-summary"

    @pytest.mark.asyncio
    async def test_missing_processor_fails(self, html_source):
        router = ProcessorRouter({})

        summary = await router.process(html_source)

        assert summary.status == SummaryStatus.FAILED
        assert "Unsupported source type" in summary.fetch_error
