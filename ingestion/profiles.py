"""Scraping profiles and the configuration store that resolves them per source."""
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from shared.config import settings
from shared.errors import IncompleteProfileError, MissingProfileError, UnknownProfileError
from shared.models import SourceModel, SourceType
from shared.utils import validate_url

logger = logging.getLogger(__name__)

SELECTOR_FIELDS = (
    "article_selector",
    "title_selector",
    "url_selector",
    "date_selector",
    "description_selector",
)


class TitleCleaning(BaseModel):
    """Rules stripped from scraped titles."""
    remove_prefixes: Tuple[str, ...] = ()
    remove_patterns: Tuple[str, ...] = ()

    class Config:
        frozen = True


class ScrapingProfile(BaseModel):
    """Extraction rules for one website."""
    website_id: Optional[str] = None
    name: Optional[str] = None
    base_url: Optional[str] = None
    article_selector: Optional[str] = None
    title_selector: Optional[str] = None
    url_selector: Optional[str] = None
    date_selector: Optional[str] = None
    description_selector: Optional[str] = None
    skip_articles_without_dates: bool = False
    date_from_text: bool = False
    title_cleaning: TitleCleaning = TitleCleaning()
    max_articles: Optional[int] = None
    requires_rendering: bool = False
    wait_for_selector: Optional[str] = None

    class Config:
        frozen = True


BUILTIN_PROFILES: Tuple[ScrapingProfile, ...] = (
    ScrapingProfile(
        website_id="anthropic-news",
        name="Anthropic News",
        base_url="https://www.anthropic.com",
        article_selector='a[href*="/news/"]',
        date_selector=".PostList_post-date__djrOA, .PostCard_post-timestamp__etH9K",
        max_articles=20,
        skip_articles_without_dates=True,
        date_from_text=True,
        title_cleaning=TitleCleaning(
            remove_prefixes=(
                "Featured", "Announcements", "Product", "Policy", "Societal Impacts",
                "Interpretability", "Alignment", "Education", "Event",
            ),
            remove_patterns=(
                r"(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+\d{1,2},?\s+\d{4}$",
            ),
        ),
    ),
    ScrapingProfile(
        website_id="elevenlabs-blog",
        name="ElevenLabs Blog",
        base_url="https://elevenlabs.io",
        article_selector='article, [data-post], .post',
        title_selector="h1, h2, h3, .title, .post-title",
        description_selector=".excerpt, .summary, p",
        date_selector="time, .date, .published",
        skip_articles_without_dates=True,
    ),
    ScrapingProfile(
        website_id="scale-blog",
        name="Scale AI Blog",
        base_url="https://scale.com",
        article_selector='a[href*="/blog/"]',
        title_selector="h2, h3, h4",
        date_selector="time, .date",
        requires_rendering=True,
        wait_for_selector='a[href*="/blog/"]',
    ),
)


@dataclass(frozen=True)
class SourceValidation:
    """Non-raising validation report for a source."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class ProfileStore:
    """
    Read-only store of scraping profiles.

    Built once at process start and passed to whatever needs it. Resolution
    merges defaults < named profile < inline source selectors.
    """

    def __init__(
        self,
        profiles: Iterable[ScrapingProfile] = BUILTIN_PROFILES,
        defaults: Optional[ScrapingProfile] = None
    ):
        by_id: Dict[str, ScrapingProfile] = {}
        for profile in profiles:
            if not profile.website_id:
                raise ValueError("Every stored profile needs a website_id")
            by_id[profile.website_id] = profile
        self._profiles: Mapping[str, ScrapingProfile] = MappingProxyType(by_id)
        self._defaults = defaults or ScrapingProfile(max_articles=settings.max_articles_per_source)

    @property
    def defaults(self) -> ScrapingProfile:
        return self._defaults

    def list_profile_ids(self) -> List[str]:
        """Get all known profile IDs."""
        return sorted(self._profiles)

    def has_profile(self, website_id: str) -> bool:
        """Check if a profile exists."""
        return website_id in self._profiles

    def get_profile(self, website_id: str) -> Optional[ScrapingProfile]:
        """Get a stored profile by ID."""
        return self._profiles.get(website_id)

    def resolve(self, source: SourceModel) -> ScrapingProfile:
        """
        Resolve the effective scraping profile for an HTML source.

        Raises:
            MissingProfileError: no profile reference and no inline article selector
            UnknownProfileError: profile reference not in the store
            IncompleteProfileError: merged profile has no article selector
        """
        overrides = source.custom_selectors
        inline_article = overrides.article_selector if overrides else None

        if not source.website_id and not inline_article:
            raise MissingProfileError(
                f"HTML source '{source.name}' has no website profile and no inline article selector"
            )

        merged = self._defaults.model_dump()
        if source.website_id:
            profile = self._profiles.get(source.website_id)
            if profile is None:
                raise UnknownProfileError(
                    f"No scraping profile found for website_id '{source.website_id}'"
                )
            merged.update(_explicit_fields(profile))

        if overrides:
            for name in SELECTOR_FIELDS:
                value = getattr(overrides, name)
                if value:
                    merged[name] = value
            logger.debug(f"Applied inline selectors for {source.name}: {overrides.model_dump(exclude_none=True)}")

        if not merged.get("base_url"):
            merged["base_url"] = source.url
        if source.requires_rendering:
            merged["requires_rendering"] = True
        if merged.get("max_articles") is None:
            merged["max_articles"] = self._defaults.max_articles or settings.max_articles_per_source

        resolved = ScrapingProfile(**merged)
        if not resolved.article_selector:
            raise IncompleteProfileError(
                f"Resolved profile for '{source.name}' has no article selector"
            )
        return resolved

    def validate_source(self, source: SourceModel) -> SourceValidation:
        """Check a source's configuration without raising."""
        errors: List[str] = []
        warnings: List[str] = []

        if not source.id or not source.id.strip():
            errors.append("Source ID is required")
        if not source.name or not source.name.strip():
            errors.append("Source name is required")
        if not source.url or not source.url.strip():
            errors.append("Source URL is required")
        elif not validate_url(source.url):
            errors.append("Source URL is not valid")

        if source.type == SourceType.HTML:
            inline_article = source.custom_selectors.article_selector if source.custom_selectors else None
            if not source.website_id and not inline_article:
                errors.append("HTML sources require a website_id or an inline article selector")
            elif source.website_id and not self.has_profile(source.website_id):
                errors.append(f"No configuration found for website_id: {source.website_id}")
            if source.custom_selectors and not source.website_id:
                warnings.append("Custom selectors provided but no website_id specified")
        elif source.website_id:
            warnings.append("RSS sources do not need website_id")

        return SourceValidation(is_valid=not errors, errors=errors, warnings=warnings)


def _explicit_fields(profile: ScrapingProfile) -> dict:
    """Fields of a profile that carry a value, so unset ones keep the defaults."""
    return profile.model_dump(exclude_unset=True)

