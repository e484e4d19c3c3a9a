"""Response schemas for API endpoints."""
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from shared.models import ProcessingSummary


class FetchRunLogResponse(BaseModel):
    """Response schema for a stored fetch run log."""
    run_id: str = Field(..., description="Unique run identifier")
    start_time: datetime = Field(..., description="Run start timestamp")
    end_time: Optional[datetime] = Field(None, description="Run end timestamp")
    status: str = Field(..., description="Overall run status")
    total_sources_attempted: int = Field(0, description="Sources processed in the run")
    total_sources_succeeded: int = Field(0, description="Sources that did not fail")
    total_sources_failed: int = Field(0, description="Sources that failed")
    total_new_articles: int = Field(0, description="Articles added across all sources")
    source_summaries: List[ProcessingSummary] = Field(default_factory=list, description="Per-source summaries")
    orchestration_errors: List[str] = Field(default_factory=list, description="Run-level errors and notes")

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "FetchRunLogResponse":
        data = dict(document)
        data["run_id"] = data.pop("_id")
        return cls(**data)


class ProfileResponse(BaseModel):
    """Schema for a stored scraping profile."""
    website_id: str = Field(..., description="Profile identifier")
    name: Optional[str] = Field(None, description="Website name")
    base_url: Optional[str] = Field(None, description="Base URL for relative links")
    article_selector: Optional[str] = Field(None, description="Selector for article containers")
    requires_rendering: bool = Field(False, description="Whether the site needs a rendered fetch")


class SourceValidationResponse(BaseModel):
    """Response schema for a source configuration check."""
    source_id: str = Field(..., description="Source identifier")
    is_valid: bool = Field(..., description="Whether the source can be processed")
    errors: List[str] = Field(default_factory=list, description="Blocking problems")
    warnings: List[str] = Field(default_factory=list, description="Non-blocking problems")


class UncategorizedArticleResponse(BaseModel):
    """Schema for an article awaiting categorization."""
    article_id: str = Field(..., description="Unique article identifier")
    title: str = Field(..., description="Article title")
    url: str = Field(..., description="Article URL")
    description: Optional[str] = Field(None, description="Article description")
    source_name: str = Field(..., description="Source the article came from")
    published_date: Optional[datetime] = Field(None, description="Publication date, if known")
    fetched_at: datetime = Field(..., description="Ingestion timestamp")


class ErrorResponse(BaseModel):
    """Schema for error responses."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Detailed error information")
