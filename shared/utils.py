"""Shared utility functions."""
import re
import uuid
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional
from urllib.parse import urlparse


# Formats accepted for dates scraped out of HTML pages
ACCEPTED_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%m/%d/%Y",
)

MONTH_DAY_YEAR_PATTERN = re.compile(
    r"(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+\d{1,2},?\s+\d{4}"
)


def generate_run_id() -> str:
    """Generate a unique fetch run ID."""
    return f"run_{uuid.uuid4().hex[:12]}"


def generate_article_id() -> str:
    """Generate a unique article ID."""
    return f"art_{uuid.uuid4().hex[:12]}"


def get_utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def normalize_url(url: str) -> str:
    """Normalize URL for consistent comparison."""
    parsed = urlparse(url.strip())
    # Remove trailing slash and fragment, lowercase scheme and host
    normalized = f"{parsed.scheme.lower()}://{parsed.netloc.lower()}{parsed.path.rstrip('/')}"
    if parsed.query:
        normalized += f"?{parsed.query}"
    return normalized


def validate_url(url: str) -> bool:
    """Validate that a URL is properly formatted."""
    try:
        result = urlparse(url)
        return all([result.scheme in ('http', 'https'), result.netloc])
    except ValueError:
        return False


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a scraped date string against the accepted formats.

    Tries ISO 8601, then RFC 2822, then ACCEPTED_DATE_FORMATS. Returns None
    when nothing matches; callers decide whether that is an error.
    """
    if not value:
        return None
    text = " ".join(value.split())
    if not text:
        return None

    try:
        return _as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    try:
        return _as_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        pass

    for fmt in ACCEPTED_DATE_FORMATS:
        try:
            return _as_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue

    return None


def find_date_in_text(text: str) -> Optional[datetime]:
    """Find a 'Mon DD, YYYY' date anywhere in free text."""
    match = MONTH_DAY_YEAR_PATTERN.search(text or "")
    if not match:
        return None
    return parse_date(match.group(0).replace(".", ""))
