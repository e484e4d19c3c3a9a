"""Pytest configuration and fixtures."""
import pytest
from typing import Dict, Tuple
from unittest.mock import MagicMock, AsyncMock
from pymongo.errors import DuplicateKeyError

from ingestion.deduplication import DeduplicationService
from ingestion.profiles import ProfileStore
from shared.models import ArticleModel, SelectorOverrides, SourceModel, SourceType


class InMemoryArticleRepository:
    """Article repository fake keyed like the unique index."""

    def __init__(self):
        self.articles: Dict[Tuple[str, str], ArticleModel] = {}

    async def find_by_identity(self, source_name: str, identity_key: str):
        article = self.articles.get((source_name, identity_key))
        return article.model_dump(by_alias=True) if article else None

    async def insert_article(self, article: ArticleModel) -> ArticleModel:
        key = (article.source_name, article.identity_key)
        if key in self.articles:
            raise DuplicateKeyError("E11000 duplicate key error")
        self.articles[key] = article
        return article


@pytest.fixture
def article_repo():
    """In-memory article repository."""
    return InMemoryArticleRepository()


@pytest.fixture
def deduplicator(article_repo):
    """Deduplication service over the in-memory repository."""
    return DeduplicationService(article_repo)


@pytest.fixture
def profile_store():
    """Profile store with the built-in profiles."""
    return ProfileStore()


@pytest.fixture
def mock_mongo_db():
    """Create mock MongoDB database."""
    db = MagicMock()

    # Mock collections
    db.sources = MagicMock()
    db.articles = MagicMock()
    db.fetch_run_logs = MagicMock()

    # Mock common operations
    db.sources.find_one = AsyncMock()
    db.sources.update_one = AsyncMock()
    db.sources.find = MagicMock()

    db.articles.find_one = AsyncMock()
    db.articles.insert_one = AsyncMock()
    db.articles.find = MagicMock()

    db.fetch_run_logs.find_one = AsyncMock()
    db.fetch_run_logs.insert_one = AsyncMock()
    db.fetch_run_logs.update_one = AsyncMock()
    db.fetch_run_logs.find = MagicMock()

    return db


@pytest.fixture
def mock_redis_client():
    """Create mock Redis client."""
    redis = AsyncMock()
    redis.publish = AsyncMock(return_value=1)
    return redis


@pytest.fixture
def rss_source():
    """Create sample RSS source."""
    return SourceModel(
        id="src_rss001",
        name="Example Feed",
        url="https://example.com/feed.xml",
        type=SourceType.RSS
    )


@pytest.fixture
def html_source():
    """Create sample HTML source with inline selectors."""
    return SourceModel(
        id="src_html001",
        name="Example Blog",
        url="https://blog.example.com/posts",
        type=SourceType.HTML,
        custom_selectors=SelectorOverrides(
            article_selector=".post",
            title_selector="h2",
            date_selector="time",
            description_selector="p.excerpt"
        )
    )


@pytest.fixture
def sample_feed():
    """RSS feed with two entries, one without guid or link."""
    return """<?xml version="1.0" encoding="UTF-8"?>
    <rss version="2.0">
      <channel>
        <title>Example Feed</title>
        <link>https://example.com</link>
        <description>Example</description>
        <item>
          <title>First Post</title>
          <link>https://example.com/posts/first</link>
          <guid isPermaLink="false">post-1</guid>
          <description>The first post.</description>
          <pubDate>Mon, 15 Jan 2024 10:00:00 GMT</pubDate>
        </item>
        <item>
          <title>Orphan Post</title>
          <description>No way to identify this one.</description>
        </item>
      </channel>
    </rss>
    """


def _make_listing(count: int, start: int = 1) -> str:
    """Listing page with ``count`` .post containers."""
    posts = "\n".join(
        f"""
        <div class="post">
          <h2>Post {i}</h2>
          <a href="/posts/{i}">Read more</a>
          <time datetime="2024-03-{i:02d}">March {i}, 2024</time>
          <p class="excerpt">Excerpt {i}</p>
        </div>
        """
        for i in range(start, start + count)
    )
    return f"<html><body><main>{posts}</main></body></html>"


@pytest.fixture
def make_listing():
    """Factory for listing pages with a given number of posts."""
    return _make_listing


@pytest.fixture
def listing_html():
    """Listing page with ten posts."""
    return _make_listing(10)
