"""Fetch run routes for the REST API."""
from typing import List
from fastapi import APIRouter, HTTPException, Depends, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from api.dependencies import get_orchestrator
from api.schemas.responses import FetchRunLogResponse
from database.connection import get_db
from database.repositories.run_log_repo import RunLogRepository
from ingestion.orchestrator import FetchOrchestrator
from shared.models import OverallFetchRunResult


router = APIRouter(prefix="/fetch", tags=["fetch"])


@router.post("/all-sources", response_model=OverallFetchRunResult)
async def fetch_all_sources(
    orchestrator: FetchOrchestrator = Depends(get_orchestrator)
):
    """
    Fetch every enabled source now.

    - Processes sources concurrently with per-source isolation
    - Records last-run status on each source
    - Stores a run log and returns the aggregated result
    """
    return await orchestrator.run_all()


@router.get("/logs", response_model=List[FetchRunLogResponse])
async def list_fetch_logs(
    limit: int = Query(20, ge=1, le=100),
    skip: int = Query(0, ge=0),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """List fetch run logs, newest first, without per-source summaries."""
    run_log_repo = RunLogRepository(db)
    logs = await run_log_repo.list_run_logs(limit=limit, skip=skip)
    return [FetchRunLogResponse.from_document(log) for log in logs]


@router.get("/logs/{run_id}", response_model=FetchRunLogResponse)
async def get_fetch_log(
    run_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Get one fetch run log including its source summaries."""
    run_log_repo = RunLogRepository(db)

    log = await run_log_repo.get_run_log(run_id)

    if not log:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Run {run_id} not found"
        )

    return FetchRunLogResponse.from_document(log)
