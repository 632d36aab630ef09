"""
Build Configuration

Environment-driven settings for the prerender pipeline, and the immutable
``BuildConfiguration`` snapshot handed to every component of one build.

Design Goals
------------
- One place for every tunable (batch size, article cap, exclusions)
- Settings are loaded once per process and never mutated
- Components receive an explicit ``BuildConfiguration``, not ambient state
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SITE_URL = "https://ajuda.modopag.com.br"
DEFAULT_DESCRIPTION = (
    "Central de Ajuda modoPAG - Encontre respostas para suas dúvidas sobre "
    "pagamentos digitais, cartões e soluções financeiras."
)


class Settings(BaseSettings):
    site_url: str = DEFAULT_SITE_URL
    base_path: str = "/"
    site_name: str = "modoPAG Central de Ajuda"
    default_title: str = "Central de Ajuda modoPAG - Suporte e Dúvidas"
    default_description: str = DEFAULT_DESCRIPTION
    default_og_image: str = f"{DEFAULT_SITE_URL}/og-default.jpg"

    max_articles: int = 100
    render_batch_size: int = 10
    related_articles_limit: int = 5

    # Path prefixes never prerendered (admin/auth style pages)
    excluded_routes: List[str] = ["/admin", "/auth", "/login", "/dashboard"]
    extra_routes: List[str] = []

    generate_sitemap: bool = True
    generate_robots_txt: bool = True
    optimize_images: bool = True
    validate_seo: bool = True

    dist_dir: str = "dist"
    client_build_command: str = "npm run build"
    sanity_marker: str = "modoPAG"
    sanity_min_bytes: int = 1000

    supabase_url: str = "https://sqroxesqxyzyxzywkybc.supabase.co"
    supabase_service_key: Optional[SecretStr] = None
    content_timeout: float = 15.0

    model_config = SettingsConfigDict(
        env_prefix="SSG_",
        env_file=".env",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


# ---------------------------------------------------------------------
# Immutable per-build configuration
# ---------------------------------------------------------------------

class FeatureFlags(BaseModel):
    """Optional build outputs and checks."""

    generate_sitemap: bool = True
    generate_robots_txt: bool = True
    optimize_images: bool = True
    validate_seo: bool = True

    model_config = ConfigDict(frozen=True, extra="forbid")


class BuildConfiguration(BaseModel):
    """
    Process-wide, read-only configuration for one build.

    Created once at build start via ``from_settings`` and shared by the
    enumerator, scheduler, renderer and driver. Instances are frozen, so no
    locking is needed when batches read them.
    """

    max_articles: int = Field(default=100, ge=0)
    batch_size: int = Field(default=10, ge=1)
    site_url: str = DEFAULT_SITE_URL
    base_path: str = "/"
    excluded_routes: Tuple[str, ...] = ("/admin", "/auth", "/login", "/dashboard")
    extra_routes: Tuple[str, ...] = ()
    features: FeatureFlags = Field(default_factory=FeatureFlags)

    site_name: str = "modoPAG Central de Ajuda"
    default_title: str = "Central de Ajuda modoPAG - Suporte e Dúvidas"
    default_description: str = DEFAULT_DESCRIPTION
    default_og_image: str = f"{DEFAULT_SITE_URL}/og-default.jpg"
    related_articles_limit: int = Field(default=5, ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("site_url")
    @classmethod
    def validate_site_url(cls, v: str) -> str:
        v = v.strip()
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("site_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("base_path")
    @classmethod
    def normalize_base_path(cls, v: str) -> str:
        v = "/" + v.strip().strip("/")
        return v if v == "/" else v + "/"

    @field_validator("excluded_routes", "extra_routes", mode="before")
    @classmethod
    def normalize_route_list(cls, v):
        if isinstance(v, str):
            v = [v]
        cleaned = []
        for item in v:
            item = item.strip()
            if not item:
                continue
            cleaned.append(item if item.startswith("/") else "/" + item)
        return tuple(cleaned)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BuildConfiguration":
        return cls(
            max_articles=settings.max_articles,
            batch_size=settings.render_batch_size,
            site_url=settings.site_url,
            base_path=settings.base_path,
            excluded_routes=settings.excluded_routes,
            extra_routes=settings.extra_routes,
            features=FeatureFlags(
                generate_sitemap=settings.generate_sitemap,
                generate_robots_txt=settings.generate_robots_txt,
                optimize_images=settings.optimize_images,
                validate_seo=settings.validate_seo,
            ),
            site_name=settings.site_name,
            default_title=settings.default_title,
            default_description=settings.default_description,
            default_og_image=settings.default_og_image,
            related_articles_limit=settings.related_articles_limit,
        )

    def absolute_url(self, path: str) -> str:
        """Join a site path onto ``site_url``."""
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.site_url}{path}"
