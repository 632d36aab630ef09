"""
Configuration Tests

Tests for the environment settings and the frozen per-build configuration.
"""

import pytest
from pydantic import ValidationError

from helpcenter_ssg.config import BuildConfiguration, Settings


class TestBuildConfiguration:
    """Tests for BuildConfiguration validation and normalization."""

    def test_defaults(self):
        """Verify defaults match the production site."""
        config = BuildConfiguration()

        assert config.max_articles == 100
        assert config.batch_size == 10
        assert config.base_path == "/"
        assert config.site_url == "https://ajuda.modopag.com.br"
        assert config.features.generate_sitemap is True

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("/", "/"),
            ("", "/"),
            ("ajuda", "/ajuda/"),
            ("/ajuda", "/ajuda/"),
            ("/ajuda/", "/ajuda/"),
            ("/central/ajuda/", "/central/ajuda/"),
        ],
    )
    def test_base_path_normalized(self, raw, expected):
        """Verify base_path always starts and ends with a slash."""
        assert BuildConfiguration(base_path=raw).base_path == expected

    def test_site_url_trailing_slash_stripped(self):
        """Verify site_url is stored without a trailing slash."""
        config = BuildConfiguration(site_url="https://example.com/")
        assert config.site_url == "https://example.com"

    def test_site_url_requires_scheme(self):
        """Verify a site_url without http(s) is rejected."""
        with pytest.raises(ValidationError):
            BuildConfiguration(site_url="example.com")

    def test_batch_size_must_be_positive(self):
        """Verify a zero batch size is rejected."""
        with pytest.raises(ValidationError):
            BuildConfiguration(batch_size=0)

    def test_negative_max_articles_rejected(self):
        with pytest.raises(ValidationError):
            BuildConfiguration(max_articles=-1)

    def test_route_lists_get_leading_slash(self):
        """Verify excluded and extra routes are normalized to absolute paths."""
        config = BuildConfiguration(
            excluded_routes=["admin", "/auth", "  "],
            extra_routes="faq",
        )

        assert config.excluded_routes == ("/admin", "/auth")
        assert config.extra_routes == ("/faq",)

    def test_is_frozen(self):
        """Verify the configuration cannot be mutated during a build."""
        config = BuildConfiguration()
        with pytest.raises(ValidationError):
            config.batch_size = 5

    def test_absolute_url(self):
        config = BuildConfiguration(site_url="https://example.com")

        assert config.absolute_url("/taxas/") == "https://example.com/taxas/"
        assert config.absolute_url("taxas/") == "https://example.com/taxas/"


class TestFromSettings:
    """Tests for building a configuration from environment settings."""

    def test_maps_settings_fields(self):
        """Verify every tunable is carried over."""
        settings = Settings(
            render_batch_size=3,
            max_articles=7,
            base_path="ajuda",
            excluded_routes=["admin"],
            generate_sitemap=False,
            validate_seo=False,
        )

        config = BuildConfiguration.from_settings(settings)

        assert config.batch_size == 3
        assert config.max_articles == 7
        assert config.base_path == "/ajuda/"
        assert config.excluded_routes == ("/admin",)
        assert config.features.generate_sitemap is False
        assert config.features.validate_seo is False
        assert config.features.generate_robots_txt is True

    def test_reads_environment(self, monkeypatch):
        """Verify SSG_-prefixed environment variables are honored."""
        monkeypatch.setenv("SSG_RENDER_BATCH_SIZE", "4")
        monkeypatch.setenv("SSG_SITE_URL", "https://staging.modopag.com.br")

        config = BuildConfiguration.from_settings(Settings())

        assert config.batch_size == 4
        assert config.site_url == "https://staging.modopag.com.br"

    def test_service_key_is_secret(self, monkeypatch):
        monkeypatch.setenv("SSG_SUPABASE_SERVICE_KEY", "service-role-key")

        settings = Settings()

        assert "service-role-key" not in repr(settings)
        assert settings.supabase_service_key.get_secret_value() == "service-role-key"
