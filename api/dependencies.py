"""FastAPI dependencies for the ingestion components."""
from fastapi import Request

from ingestion.orchestrator import FetchOrchestrator
from ingestion.pipeline import Pipeline
from ingestion.profiles import ProfileStore


def get_pipeline(request: Request) -> Pipeline:
    """Pipeline built during application startup."""
    return request.app.state.pipeline


def get_orchestrator(request: Request) -> FetchOrchestrator:
    return get_pipeline(request).orchestrator


def get_profile_store(request: Request) -> ProfileStore:
    return get_pipeline(request).profile_store
