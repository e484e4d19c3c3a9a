"""Scraping profile routes for the REST API."""
from typing import List
from fastapi import APIRouter, HTTPException, Depends, status

from api.dependencies import get_profile_store
from api.schemas.responses import ProfileResponse
from ingestion.profiles import ProfileStore


router = APIRouter(prefix="/profiles", tags=["profiles"])


def _to_response(profile) -> ProfileResponse:
    return ProfileResponse(
        website_id=profile.website_id,
        name=profile.name,
        base_url=profile.base_url,
        article_selector=profile.article_selector,
        requires_rendering=profile.requires_rendering
    )


@router.get("", response_model=List[ProfileResponse])
async def list_profiles(profile_store: ProfileStore = Depends(get_profile_store)):
    """List the stored scraping profiles."""
    return [
        _to_response(profile_store.get_profile(website_id))
        for website_id in profile_store.list_profile_ids()
    ]


@router.get("/{website_id}", response_model=ProfileResponse)
async def get_profile(
    website_id: str,
    profile_store: ProfileStore = Depends(get_profile_store)
):
    """Get one scraping profile."""
    profile = profile_store.get_profile(website_id)

    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Profile {website_id} not found"
        )

    return _to_response(profile)
