"""Deduplication and persistence of candidate articles."""
import logging
from dataclasses import dataclass
from typing import Optional

from pymongo.errors import DuplicateKeyError, PyMongoError

from database.repositories.article_repo import ArticleRepository
from shared.errors import PersistenceError
from shared.models import ArticleModel, CandidateArticle, SourceType, WriteAction
from shared.utils import generate_article_id, get_utc_now, normalize_url

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    """Outcome of writing one candidate."""
    action: WriteAction
    error: Optional[str] = None


def identity_key(candidate: CandidateArticle) -> Optional[str]:
    """
    Key that identifies a candidate within its source.

    Feed entries are keyed by guid when they carry one; everything else by
    normalized URL.
    """
    if candidate.source_type == SourceType.RSS and candidate.guid:
        return candidate.guid.strip()
    if candidate.url:
        return normalize_url(candidate.url)
    return None


class DeduplicationService:
    """Writes candidates that are not stored yet and skips the rest."""

    def __init__(self, article_repo: ArticleRepository):
        self.article_repo = article_repo

    async def process(self, candidate: CandidateArticle, source_name: str) -> WriteResult:
        """
        Store a candidate unless its identity already exists.

        Never raises for problems with a single candidate; they come back as
        ``WriteAction.ERROR`` with a message.
        """
        key = identity_key(candidate)
        if not key:
            return WriteResult(WriteAction.ERROR, "Item missing link.")

        try:
            existing = await self.article_repo.find_by_identity(source_name, key)
        except PyMongoError as e:
            logger.error(f"Lookup failed for {key} from {source_name}: {e}")
            return WriteResult(WriteAction.ERROR, str(PersistenceError(f"Lookup failed: {e}")))

        if existing:
            return WriteResult(WriteAction.SKIPPED)

        if not candidate.title or not candidate.title.strip():
            return WriteResult(WriteAction.ERROR, "Item missing title.")
        if not candidate.url or not candidate.url.strip():
            return WriteResult(WriteAction.ERROR, "Item missing link.")

        now = get_utc_now()
        article = ArticleModel(
            _id=generate_article_id(),
            title=candidate.title.strip(),
            url=candidate.url.strip(),
            identity_key=key,
            guid=candidate.guid,
            description=candidate.description,
            published_date=candidate.published_date,
            source_name=source_name,
            source_url=candidate.source_url,
            fetched_at=now,
            created_at=now,
            updated_at=now,
        )

        try:
            await self.article_repo.insert_article(article)
        except DuplicateKeyError:
            # Another writer stored the same identity first
            logger.debug(f"Concurrent insert for {key} from {source_name}, skipping")
            return WriteResult(WriteAction.SKIPPED)
        except PyMongoError as e:
            logger.error(f"Insert failed for {key} from {source_name}: {e}")
            return WriteResult(WriteAction.ERROR, str(PersistenceError(f"Insert failed: {e}")))

        return WriteResult(WriteAction.ADDED)
