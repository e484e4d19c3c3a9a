"""Configuration store tests."""
import pytest

from ingestion.profiles import BUILTIN_PROFILES, ProfileStore, ScrapingProfile
from shared.errors import (
    ConfigError,
    IncompleteProfileError,
    MissingProfileError,
    UnknownProfileError,
)
from shared.models import SelectorOverrides, SourceModel, SourceType


def html_source(**kwargs) -> SourceModel:
    data = {
        "id": "src_1",
        "name": "Some Site",
        "url": "https://site.example.com/blog",
        "type": SourceType.HTML,
    }
    data.update(kwargs)
    return SourceModel(**data)


class TestResolve:
    """Tests for ProfileStore.resolve."""

    def test_named_profile_over_defaults(self, profile_store):
        profile = profile_store.resolve(html_source(website_id="anthropic-news"))

        assert profile.article_selector == 'a[href*="/news/"]'
        assert profile.base_url == "https://www.anthropic.com"
        assert profile.skip_articles_without_dates is True
        assert "Announcements" in profile.title_cleaning.remove_prefixes

    def test_inline_selectors_override_named_profile(self, profile_store):
        source = html_source(
            website_id="elevenlabs-blog",
            custom_selectors=SelectorOverrides(title_selector=".headline")
        )

        profile = profile_store.resolve(source)

        assert profile.title_selector == ".headline"
        assert profile.article_selector == "article, [data-post], .post"

    def test_inline_only_source_uses_defaults(self, profile_store):
        source = html_source(custom_selectors=SelectorOverrides(article_selector=".post"))

        profile = profile_store.resolve(source)

        assert profile.article_selector == ".post"
        assert profile.base_url == "https://site.example.com/blog"
        assert profile.max_articles == profile_store.defaults.max_articles
        assert profile.skip_articles_without_dates is False

    def test_source_flag_forces_rendering(self, profile_store):
        source = html_source(
            custom_selectors=SelectorOverrides(article_selector=".post"),
            requires_rendering=True
        )
        assert profile_store.resolve(source).requires_rendering is True

    def test_missing_profile(self, profile_store):
        with pytest.raises(MissingProfileError):
            profile_store.resolve(html_source())

    def test_unknown_profile(self, profile_store):
        with pytest.raises(UnknownProfileError):
            profile_store.resolve(html_source(website_id="does-not-exist"))

    def test_incomplete_profile(self):
        store = ProfileStore(profiles=[ScrapingProfile(website_id="bare", name="Bare")])

        with pytest.raises(IncompleteProfileError):
            store.resolve(html_source(website_id="bare"))

    def test_config_errors_share_a_base(self):
        assert issubclass(MissingProfileError, ConfigError)
        assert issubclass(UnknownProfileError, ConfigError)
        assert issubclass(IncompleteProfileError, ConfigError)

    def test_resolve_does_not_mutate_store(self, profile_store):
        before = profile_store.get_profile("elevenlabs-blog")
        profile_store.resolve(html_source(
            website_id="elevenlabs-blog",
            custom_selectors=SelectorOverrides(title_selector=".headline")
        ))
        assert profile_store.get_profile("elevenlabs-blog") == before


class TestEnumeration:
    """Tests for profile enumeration and lookup."""

    def test_list_profile_ids(self, profile_store):
        ids = profile_store.list_profile_ids()
        assert ids == sorted(p.website_id for p in BUILTIN_PROFILES)

    def test_has_profile(self, profile_store):
        assert profile_store.has_profile("scale-blog")
        assert not profile_store.has_profile("nope")

    def test_profiles_are_immutable(self, profile_store):
        profile = profile_store.get_profile("scale-blog")
        with pytest.raises(Exception):
            profile.article_selector = "div"

    def test_store_requires_website_ids(self):
        with pytest.raises(ValueError):
            ProfileStore(profiles=[ScrapingProfile(article_selector="div")])


class TestValidateSource:
    """Tests for the non-raising source validation report."""

    def test_valid_profiled_source(self, profile_store):
        result = profile_store.validate_source(html_source(website_id="scale-blog"))
        assert result.is_valid
        assert result.errors == []

    def test_html_source_without_selectors(self, profile_store):
        result = profile_store.validate_source(html_source())
        assert not result.is_valid
        assert any("website_id" in e for e in result.errors)

    def test_unknown_profile_reported(self, profile_store):
        result = profile_store.validate_source(html_source(website_id="nope"))
        assert not result.is_valid
        assert "No configuration found for website_id: nope" in result.errors

    def test_bad_url_reported(self, profile_store):
        result = profile_store.validate_source(html_source(website_id="scale-blog", url="not a url"))
        assert "Source URL is not valid" in result.errors

    def test_rss_source_with_website_id_warns(self, profile_store):
        source = SourceModel(
            id="src_rss",
            name="Feed",
            url="https://example.com/feed",
            type=SourceType.RSS,
            website_id="scale-blog"
        )
        result = profile_store.validate_source(source)
        assert result.is_valid
        assert "RSS sources do not need website_id" in result.warnings
