"""Deduplication service tests."""
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from ingestion.deduplication import DeduplicationService, identity_key
from shared.models import CandidateArticle, SourceType, WriteAction


def candidate(**kwargs) -> CandidateArticle:
    data = {
        "title": "Test Article Title",
        "url": "https://example.com/test-article",
        "source_name": "TestSource",
        "source_url": "https://example.com/feed",
        "source_type": SourceType.RSS,
    }
    data.update(kwargs)
    return CandidateArticle(**data)


class TestIdentityKey:
    """Tests for identity_key."""

    def test_rss_prefers_guid(self):
        assert identity_key(candidate(guid="guid-1")) == "guid-1"

    def test_rss_falls_back_to_normalized_url(self):
        assert identity_key(candidate(url="https://Example.com/a/")) == "https://example.com/a"

    def test_html_uses_url_even_with_guid(self):
        item = candidate(source_type=SourceType.HTML, guid="ignored", url="https://example.com/b")
        assert identity_key(item) == "https://example.com/b"

    def test_no_guid_or_url(self):
        assert identity_key(candidate(url=None)) is None


class TestDeduplicationService:
    """Tests for DeduplicationService.process."""

    @pytest.mark.asyncio
    async def test_new_article_added(self, deduplicator, article_repo):
        published = datetime(2024, 1, 15, tzinfo=timezone.utc)

        result = await deduplicator.process(candidate(published_date=published), "TestSource")

        assert result.action == WriteAction.ADDED
        stored = article_repo.articles[("TestSource", "https://example.com/test-article")]
        assert stored.title == "Test Article Title"
        assert stored.published_date == published
        assert stored.categorization_status is None
        assert stored.is_read is False

    @pytest.mark.asyncio
    async def test_known_identity_skipped_without_modification(self, deduplicator, article_repo):
        await deduplicator.process(candidate(), "TestSource")
        before = article_repo.articles[("TestSource", "https://example.com/test-article")]

        result = await deduplicator.process(candidate(title="Edited title"), "TestSource")

        assert result.action == WriteAction.SKIPPED
        assert article_repo.articles[("TestSource", "https://example.com/test-article")] is before
        assert len(article_repo.articles) == 1

    @pytest.mark.asyncio
    async def test_same_url_from_another_source_is_new(self, deduplicator, article_repo):
        await deduplicator.process(candidate(), "TestSource")

        result = await deduplicator.process(candidate(), "OtherSource")

        assert result.action == WriteAction.ADDED
        assert len(article_repo.articles) == 2

    @pytest.mark.asyncio
    async def test_missing_title_is_an_error(self, deduplicator, article_repo):
        result = await deduplicator.process(candidate(title="   "), "TestSource")

        assert result.action == WriteAction.ERROR
        assert "title" in result.error
        assert article_repo.articles == {}

    @pytest.mark.asyncio
    async def test_guid_without_link_is_an_error(self, deduplicator):
        result = await deduplicator.process(candidate(url=None, guid="guid-only"), "TestSource")

        assert result.action == WriteAction.ERROR
        assert result.error == "Item missing link."

    @pytest.mark.asyncio
    async def test_concurrent_insert_reported_as_skipped(self):
        repo = MagicMock()
        repo.find_by_identity = AsyncMock(return_value=None)
        repo.insert_article = AsyncMock(side_effect=DuplicateKeyError("E11000 duplicate key error"))

        result = await DeduplicationService(repo).process(candidate(), "TestSource")

        assert result.action == WriteAction.SKIPPED

    @pytest.mark.asyncio
    async def test_database_failure_reported_as_error(self):
        repo = MagicMock()
        repo.find_by_identity = AsyncMock(return_value=None)
        repo.insert_article = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

        result = await DeduplicationService(repo).process(candidate(), "TestSource")

        assert result.action == WriteAction.ERROR
        assert "Insert failed" in result.error
