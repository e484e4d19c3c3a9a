"""Error taxonomy for the ingestion pipeline."""
from typing import Optional


class IngestionError(Exception):
    """Base class for all ingestion errors."""


class ConfigError(IngestionError):
    """A source cannot be resolved to a usable scraping profile."""


class MissingProfileError(ConfigError):
    """HTML source has neither a profile reference nor an inline article selector."""


class UnknownProfileError(ConfigError):
    """HTML source references a profile that is not in the store."""


class IncompleteProfileError(ConfigError):
    """Resolved profile has no article selector."""


class FetchError(IngestionError):
    """Network, timeout or render failure while retrieving a source."""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class RenderBlockedError(FetchError):
    """Rendered page is an anti-bot challenge or block page."""


class ExtractionError(IngestionError):
    """A single feed entry or page container could not be turned into a candidate."""

    def __init__(self, message: str, item_title: Optional[str] = None, item_link: Optional[str] = None):
        super().__init__(message)
        self.item_title = item_title
        self.item_link = item_link


class PersistenceError(IngestionError):
    """Writing a single article failed."""


class OrchestrationError(IngestionError):
    """Run-level failure not attributable to a single source."""


class SchemaError(IngestionError):
    """A collaborator emitted a payload that does not match its contract."""


class SourceNotFound(IngestionError):
    """Requested source does not exist."""


class SourceDisabled(IngestionError):
    """Requested source exists but is disabled."""
