"""Domain models shared by the API and the ingestion pipeline."""
from enum import Enum
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class SourceType(str, Enum):
    """Source type enumeration."""
    RSS = "rss"
    HTML = "html"


class SummaryStatus(str, Enum):
    """Per-source processing status."""
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"


class RunStatus(str, Enum):
    """Overall fetch run status."""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"


class ScrapeStrategy(str, Enum):
    """Retrieval strategy used for an HTML source."""
    LIGHTWEIGHT = "lightweight"
    RENDERED = "rendered"


class WriteAction(str, Enum):
    """Outcome of writing a single candidate article."""
    ADDED = "added"
    SKIPPED = "skipped"
    ERROR = "error"


class SelectorOverrides(BaseModel):
    """Inline selector overrides configured on a source."""
    article_selector: Optional[str] = None
    title_selector: Optional[str] = None
    url_selector: Optional[str] = None
    date_selector: Optional[str] = None
    description_selector: Optional[str] = None


class SourceModel(BaseModel):
    """Configured origin of articles."""
    id: str = Field(alias="_id")
    name: str
    url: str
    type: SourceType
    is_enabled: bool = True
    website_id: Optional[str] = None
    custom_selectors: Optional[SelectorOverrides] = None
    requires_rendering: bool = False
    last_status: Optional[str] = None
    last_fetch_message: Optional[str] = None
    last_error: Optional[str] = None
    last_fetched_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        populate_by_name = True


class CandidateArticle(BaseModel):
    """Extracted article that has not been persisted yet."""
    title: str
    url: Optional[str] = None
    guid: Optional[str] = None
    description: Optional[str] = None
    published_date: Optional[datetime] = None
    source_name: str
    source_url: str
    source_type: SourceType


class ArticleModel(BaseModel):
    """Article model for database representation."""
    id: str = Field(alias="_id")
    title: str
    url: str
    identity_key: str
    guid: Optional[str] = None
    description: Optional[str] = None
    published_date: Optional[datetime] = None
    source_name: str
    source_url: str
    category: Optional[str] = None
    categorization_status: Optional[str] = None
    is_read: bool = False
    is_starred: bool = False
    is_hidden: bool = False
    fetched_at: datetime
    created_at: datetime
    updated_at: datetime

    class Config:
        populate_by_name = True


class ItemError(BaseModel):
    """Item-level error recorded in a processing summary."""
    kind: str = "extraction"
    message: str
    item_title: Optional[str] = None
    item_link: Optional[str] = None


class ExtractionResult(BaseModel):
    """Candidates pulled out of one fetched document."""
    items_found: int = 0
    items_considered: int = 0
    candidates: List[CandidateArticle] = Field(default_factory=list)
    errors: List[ItemError] = Field(default_factory=list)


class ProcessingSummary(BaseModel):
    """Outcome of processing one source."""
    source_id: Optional[str] = None
    source_name: str
    source_url: str
    type: SourceType
    status: SummaryStatus = SummaryStatus.FAILED
    message: str = ""
    items_found: int = 0
    items_considered: int = 0
    items_processed: int = 0
    new_items_added: int = 0
    items_skipped: int = 0
    errors: List[ItemError] = Field(default_factory=list)
    fetch_error: Optional[str] = None
    strategy: Optional[ScrapeStrategy] = None
    duration_ms: Optional[int] = None

    @classmethod
    def for_source(cls, source: SourceModel) -> "ProcessingSummary":
        """Create an empty summary for a source."""
        return cls(
            source_id=source.id,
            source_name=source.name,
            source_url=source.url,
            type=source.type,
        )


class OverallFetchRunResult(BaseModel):
    """Aggregated outcome of a fetch run."""
    run_id: str
    start_time: datetime
    end_time: datetime
    status: RunStatus
    total_sources_attempted: int
    total_sources_succeeded: int
    total_sources_failed: int
    total_new_articles: int
    detailed_summaries: List[ProcessingSummary] = Field(default_factory=list)
    orchestration_errors: List[str] = Field(default_factory=list)

    class Config:
        frozen = True
