"""Article routes for the REST API."""
from typing import List
from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from api.schemas.responses import UncategorizedArticleResponse
from database.connection import get_db
from database.repositories.article_repo import ArticleRepository


router = APIRouter(prefix="/articles", tags=["articles"])


@router.get("/uncategorized", response_model=List[UncategorizedArticleResponse])
async def list_uncategorized_articles(
    limit: int = Query(50, ge=1, le=200),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """List articles that have not been categorized yet, newest first."""
    article_repo = ArticleRepository(db)

    articles = await article_repo.list_uncategorized(limit=limit)

    return [
        UncategorizedArticleResponse(
            article_id=article["_id"],
            title=article["title"],
            url=article["url"],
            description=article.get("description"),
            source_name=article["source_name"],
            published_date=article.get("published_date"),
            fetched_at=article["fetched_at"]
        )
        for article in articles
    ]
