"""RSS/Atom feed extraction."""
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import feedparser
from dateutil import parser as dateparser

from shared.errors import ExtractionError, FetchError
from shared.models import CandidateArticle, ExtractionResult, ItemError, SourceModel, SourceType

logger = logging.getLogger(__name__)


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        dt = dateparser.parse(value)
    except (ValueError, OverflowError):
        return None
    if dt is None:
        return None
    # Ensure tz-aware for consistent comparisons
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _text(entry: Any, key: str) -> Optional[str]:
    value = entry.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class RSSExtractor:
    """Turns a feed document into candidate articles, one per entry."""

    def extract(
        self,
        document: str,
        source: SourceModel,
        max_items: Optional[int] = None
    ) -> ExtractionResult:
        """
        Parse a feed document.

        Entries are kept in feed order and capped at ``max_items`` before
        anything else happens. An entry with neither guid nor link is dropped
        and recorded as an item error.

        Raises:
            FetchError: the document is not a feed at all
        """
        feed = feedparser.parse(document)
        entries = list(feed.entries or [])

        if feed.bozo and not entries:
            reason = getattr(feed, "bozo_exception", None) or "unrecognized feed format"
            raise FetchError(f"Could not parse feed: {reason}", url=source.url)

        result = ExtractionResult(items_found=len(entries))
        if max_items is not None and len(entries) > max_items:
            logger.info(
                f"Source {source.name} has {len(entries)} feed items, limiting to first {max_items}"
            )
            entries = entries[:max_items]
        result.items_considered = len(entries)

        for entry in entries:
            try:
                result.candidates.append(self._to_candidate(entry, source))
            except ExtractionError as e:
                logger.warning(f"Dropping feed entry from {source.name}: {e}")
                result.errors.append(ItemError(
                    kind="extraction",
                    message=str(e),
                    item_title=e.item_title,
                    item_link=e.item_link,
                ))

        return result

    def _to_candidate(self, entry: Any, source: SourceModel) -> CandidateArticle:
        title = _text(entry, "title") or ""
        guid = _text(entry, "id")
        link = _text(entry, "link")

        if not guid and not link:
            raise ExtractionError("Feed entry has neither guid nor link", item_title=title or None)

        # A permalink guid doubles as the article URL
        if not link and guid and entry.get("guidislink", False):
            link = guid

        published = _parse_dt(entry.get("published")) or _parse_dt(entry.get("updated"))

        return CandidateArticle(
            title=title,
            url=link,
            guid=guid,
            description=_text(entry, "summary"),
            published_date=published,
            source_name=source.name,
            source_url=source.url,
            source_type=SourceType.RSS,
        )
