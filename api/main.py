"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase

from database.connection import DatabaseConnection, get_db, ping
from api.routes import articles_router, fetch_router, profiles_router, sources_router
from api.schemas import ErrorResponse
from ingestion.pipeline import build_pipeline
from shared.config import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    db = await DatabaseConnection.init_mongo()
    redis_client = await DatabaseConnection.init_redis() if settings.publish_events else None
    app.state.pipeline = build_pipeline(db, redis_client)
    logger.info("Ingestion pipeline ready")

    yield

    # Shutdown
    await app.state.pipeline.close()
    await DatabaseConnection.close_connections()


# Create FastAPI app
app = FastAPI(
    title="News Ingestion Pipeline",
    description="Fetches, deduplicates and stores articles from RSS feeds and websites",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="Internal server error", detail=str(exc)).model_dump()
    )


# Include routers
app.include_router(fetch_router)
app.include_router(sources_router)
app.include_router(profiles_router)
app.include_router(articles_router)


@app.get("/health")
async def health_check(db: AsyncIOMotorDatabase = Depends(get_db)):
    """Report whether MongoDB answers."""
    if await ping(db):
        return {"status": "healthy", "mongo": "ok"}
    return JSONResponse(status_code=503, content={"status": "degraded", "mongo": "unreachable"})


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "News Ingestion Pipeline",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug
    )
