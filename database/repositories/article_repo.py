"""Article repository for the articles collection."""
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from shared.models import ArticleModel


class ArticleRepository:
    """Repository for article lookups and inserts.

    Articles are keyed by ``(source_name, identity_key)``; a unique index on
    that pair is declared in ``database.connection.INDEXES``.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.articles

    async def find_by_identity(
        self,
        source_name: str,
        identity_key: str
    ) -> Optional[Dict[str, Any]]:
        """Get an article by its source and identity key."""
        return await self.collection.find_one({
            "source_name": source_name,
            "identity_key": identity_key
        })

    async def insert_article(self, article: ArticleModel) -> ArticleModel:
        """Insert a new article.

        Raises ``pymongo.errors.DuplicateKeyError`` if the identity already exists.
        """
        await self.collection.insert_one(article.model_dump(by_alias=True))
        return article

    async def list_uncategorized(self, limit: int = 50) -> List[Dict[str, Any]]:
        """List articles the categorizer has not picked up yet."""
        cursor = (
            self.collection.find({"categorization_status": None, "is_hidden": False})
            .sort("fetched_at", -1)
            .limit(limit)
        )
        return await cursor.to_list(length=limit)
