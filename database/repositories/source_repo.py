"""Source repository for the sources collection."""
import logging
from typing import Optional, List, Tuple
from datetime import datetime
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from shared.models import SourceModel
from shared.utils import get_utc_now

logger = logging.getLogger(__name__)


class SourceRepository:
    """Read access to configured sources plus last-run bookkeeping."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.sources

    async def list_enabled_sources(self) -> Tuple[List[SourceModel], List[str]]:
        """
        Get all enabled sources, ordered by name.

        Documents that do not validate as a source are left out and described
        in the second list, so one bad document never hides the others.
        """
        cursor = self.collection.find({"is_enabled": True}).sort("name", 1)
        documents = await cursor.to_list(length=None)

        sources: List[SourceModel] = []
        invalid: List[str] = []
        for doc in documents:
            try:
                sources.append(SourceModel(**doc))
            except ValidationError as e:
                fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
                problem = f"Invalid source document {doc.get('_id')}: bad or missing {fields}"
                logger.warning(problem)
                invalid.append(problem)
        return sources, invalid

    async def get_source(self, source_id: str) -> Optional[SourceModel]:
        """Get a source by ID."""
        document = await self.collection.find_one({"_id": source_id})
        if not document:
            return None
        return SourceModel(**document)

    async def update_source_last_run(
        self,
        source_id: str,
        status: str,
        message: str,
        error: Optional[str] = None,
        timestamp: Optional[datetime] = None
    ) -> bool:
        """Record the outcome of the latest fetch for a source."""
        fetched_at = timestamp or get_utc_now()
        result = await self.collection.update_one(
            {"_id": source_id},
            {
                "$set": {
                    "last_status": status,
                    "last_fetch_message": message,
                    "last_error": error,
                    "last_fetched_at": fetched_at,
                    "updated_at": get_utc_now()
                }
            }
        )
        return result.modified_count > 0
