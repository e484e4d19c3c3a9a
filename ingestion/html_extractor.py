"""Selector-driven article extraction from listing pages."""
import logging
import re
from typing import Optional, Set
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from ingestion.profiles import ScrapingProfile
from shared.errors import ExtractionError
from shared.models import CandidateArticle, ExtractionResult, ItemError, SourceModel, SourceType
from shared.utils import find_date_in_text, parse_date

logger = logging.getLogger(__name__)


class HTMLExtractor:
    """Extracts candidate articles from HTML using a scraping profile."""

    def extract(
        self,
        html: str,
        profile: ScrapingProfile,
        source: SourceModel
    ) -> ExtractionResult:
        """
        Extract candidates from a listing page.

        Containers are capped at ``profile.max_articles`` before extraction.
        Containers without a URL, or with date text in no accepted format,
        become item errors. Containers without any date are kept with an unset
        date, or dropped silently when the profile skips undated articles.
        """
        soup = BeautifulSoup(html or "", "html.parser")
        containers = soup.select(profile.article_selector)

        result = ExtractionResult(items_found=len(containers))
        if profile.max_articles is not None and len(containers) > profile.max_articles:
            containers = containers[:profile.max_articles]
        result.items_considered = len(containers)

        base_url = profile.base_url or source.url
        seen_urls: Set[str] = set()

        for container in containers:
            try:
                candidate = self._extract_container(container, profile, source, base_url)
            except ExtractionError as e:
                logger.warning(f"Dropping container from {source.name}: {e}")
                result.errors.append(ItemError(
                    kind="extraction",
                    message=str(e),
                    item_title=e.item_title,
                    item_link=e.item_link,
                ))
                continue

            if candidate is None:
                continue
            if candidate.url in seen_urls:
                logger.debug(f"Skipping repeated link {candidate.url} on {source.name}")
                continue
            seen_urls.add(candidate.url)
            result.candidates.append(candidate)

        return result

    def _extract_container(
        self,
        container: Tag,
        profile: ScrapingProfile,
        source: SourceModel,
        base_url: str
    ) -> Optional[CandidateArticle]:
        title = self._extract_title(container, profile)

        url = self._extract_url(container, profile.url_selector, base_url)
        if not url:
            raise ExtractionError("Container has no resolvable URL", item_title=title or None)

        published = self._extract_date(container, profile, title, url)
        if published is None and profile.skip_articles_without_dates:
            logger.debug(f"Skipping undated article {url} on {source.name}")
            return None

        return CandidateArticle(
            title=title,
            url=url,
            description=self._extract_text(container, profile.description_selector),
            published_date=published,
            source_name=source.name,
            source_url=source.url,
            source_type=SourceType.HTML,
        )

    def _extract_title(self, container: Tag, profile: ScrapingProfile) -> str:
        if profile.title_selector:
            element = container.select_one(profile.title_selector)
            title = element.get_text(" ", strip=True) if element else ""
        else:
            title = container.get_text(" ", strip=True)
        return clean_title(title, profile)

    def _extract_url(self, container: Tag, url_selector: Optional[str], base_url: str) -> Optional[str]:
        href = None
        if url_selector:
            element = container.select_one(url_selector)
            href = element.get("href") if element else None
        else:
            href = container.get("href")
            if not href:
                link = container.find("a", href=True)
                href = link.get("href") if link else None

        if not href or not str(href).strip():
            return None
        href = str(href).strip()
        if href.startswith(("javascript:", "mailto:", "#")):
            return None
        return urljoin(base_url, href)

    def _extract_text(self, container: Tag, selector: Optional[str]) -> Optional[str]:
        if not selector:
            return None
        element = container.select_one(selector)
        if not element:
            return None
        text = element.get_text(" ", strip=True)
        return text or None

    def _extract_date(self, container: Tag, profile: ScrapingProfile, title: str, url: str):
        raw = None
        if profile.date_selector:
            element = container.select_one(profile.date_selector)
            if element:
                raw = element.get("datetime") or element.get("content") or element.get_text(" ", strip=True)

        if raw:
            published = parse_date(str(raw))
            if published is None:
                raise ExtractionError(
                    f"Unparsable date '{raw}'", item_title=title or None, item_link=url
                )
            return published

        if profile.date_from_text:
            return find_date_in_text(container.get_text(" ", strip=True))

        # Never substitute the current time for a missing date
        return None


def clean_title(title: str, profile: ScrapingProfile) -> str:
    """Strip configured prefixes and patterns, then collapse whitespace."""
    cleaning = profile.title_cleaning
    title = " ".join((title or "").split())
    for prefix in cleaning.remove_prefixes:
        title = re.sub(rf"^{re.escape(prefix)}\s*·?\s*", "", title, flags=re.IGNORECASE)
    for pattern in cleaning.remove_patterns:
        title = re.sub(pattern, "", title, flags=re.IGNORECASE)
    return " ".join(title.split())
