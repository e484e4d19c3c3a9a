# Routes module
from .articles import router as articles_router
from .fetch import router as fetch_router
from .profiles import router as profiles_router
from .sources import router as sources_router

__all__ = [
    "articles_router",
    "fetch_router",
    "profiles_router",
    "sources_router"
]
