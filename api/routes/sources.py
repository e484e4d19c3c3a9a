"""Source routes for the REST API."""
from fastapi import APIRouter, HTTPException, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from api.dependencies import get_orchestrator, get_profile_store
from api.schemas.responses import SourceValidationResponse
from database.connection import get_db
from database.repositories.source_repo import SourceRepository
from ingestion.orchestrator import FetchOrchestrator
from ingestion.profiles import ProfileStore
from shared.errors import SourceDisabled, SourceNotFound
from shared.models import ProcessingSummary


router = APIRouter(prefix="/sources", tags=["sources"])


@router.post("/{source_id}/fetch", response_model=ProcessingSummary)
async def fetch_source(
    source_id: str,
    orchestrator: FetchOrchestrator = Depends(get_orchestrator)
):
    """Fetch a single source now and return its processing summary."""
    try:
        return await orchestrator.run_single(source_id)
    except SourceNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SourceDisabled as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/{source_id}/validate", response_model=SourceValidationResponse)
async def validate_source(
    source_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    profile_store: ProfileStore = Depends(get_profile_store)
):
    """Check a source's configuration without fetching it."""
    source_repo = SourceRepository(db)

    source = await source_repo.get_source(source_id)

    if not source:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Source {source_id} not found"
        )

    validation = profile_store.validate_source(source)
    return SourceValidationResponse(
        source_id=source_id,
        is_valid=validation.is_valid,
        errors=validation.errors,
        warnings=validation.warnings
    )
