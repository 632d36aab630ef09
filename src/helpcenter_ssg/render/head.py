"""
Head Metadata

Computes title, description, canonical URL, Open Graph values and JSON-LD
structured data for a route with a layered fallback:

    page-specific SEO fields  >  the content item's own fields  >  build defaults
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from ..config import BuildConfiguration
from ..routing.models import RouteDescriptor, RouteKind
from ..routing.urls import article_path, canonical_url, category_path
from .markup import CATEGORIES_QUERY, Reader, find_category, is_home, route_slugs
from .models import HeadMetadata

SCHEMA_CONTEXT = "https://schema.org"

TITLE_MAX_LENGTH = 60
DESCRIPTION_MIN_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 160


def first_of(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value and value.strip():
            return value.strip()
    return None


def build_head(route: RouteDescriptor, read: Reader, config: BuildConfiguration) -> HeadMetadata:
    """Head metadata for ``route`` from the same query results as its markup."""
    page_url = canonical_url(route.path, config.site_url)

    if route.kind is RouteKind.SYSTEM:
        title = config.default_title if is_home(route, config) else config.site_name
        json_ld = [_website_json_ld(config)] if is_home(route, config) else []
        return HeadMetadata(
            title=title,
            description=config.default_description,
            canonical_url=page_url,
            og_image=config.default_og_image,
            og_title=title,
            og_description=config.default_description,
            og_type="website",
            json_ld=json_ld,
        )

    category_slug, article_slug = route_slugs(route, config)
    category = find_category(read(CATEGORIES_QUERY), category_slug)
    if category is None:
        raise LookupError(f"Unknown category '{category_slug}'")

    if route.kind is RouteKind.CATEGORY:
        title = f"{category['name']} - {config.site_name}"
        description = first_of(category.get("description"), config.default_description)
        articles = read(("articles", category["id"]))
        return HeadMetadata(
            title=title,
            description=description,
            canonical_url=page_url,
            og_image=config.default_og_image,
            og_title=title,
            og_description=description,
            og_type="website",
            json_ld=[_category_json_ld(category, articles, config)],
        )

    article = read(("article", article_slug))
    if article is None:
        raise LookupError(f"Unknown article '{article_slug}'")

    title = f"{first_of(article.get('meta_title'), article['title'])} | {config.site_name}"
    description = first_of(
        article.get("meta_description"),
        article.get("first_paragraph"),
        config.default_description,
    )
    return HeadMetadata(
        title=title,
        description=description,
        canonical_url=first_of(article.get("canonical_url"), page_url),
        og_image=first_of(article.get("og_image"), config.default_og_image),
        og_title=first_of(article.get("og_title"), title),
        og_description=first_of(article.get("og_description"), description),
        og_type="article",
        noindex=bool(article.get("noindex")),
        json_ld=[
            _article_json_ld(article, category, page_url, config),
            _breadcrumb_json_ld(article, category, config),
        ],
    )


def validate_head(head: HeadMetadata) -> List[str]:
    """Return SEO warnings for ``head``; an empty list means it looks fine."""
    warnings: List[str] = []
    if len(head.title) > TITLE_MAX_LENGTH:
        warnings.append(f"title is {len(head.title)} chars (max {TITLE_MAX_LENGTH})")
    if not head.description:
        warnings.append("description is empty")
    elif len(head.description) < DESCRIPTION_MIN_LENGTH:
        warnings.append(f"description is {len(head.description)} chars (min {DESCRIPTION_MIN_LENGTH})")
    elif len(head.description) > DESCRIPTION_MAX_LENGTH:
        warnings.append(f"description is {len(head.description)} chars (max {DESCRIPTION_MAX_LENGTH})")
    if not head.canonical_url.startswith(("http://", "https://")):
        warnings.append(f"canonical URL is not absolute: {head.canonical_url}")
    return warnings


# ---------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------

def _website_json_ld(config: BuildConfiguration) -> Dict[str, Any]:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "WebSite",
        "name": config.site_name,
        "url": canonical_url(config.base_path, config.site_url),
        "description": config.default_description,
    }


def _category_json_ld(
    category: Dict[str, Any],
    articles: Sequence[Dict[str, Any]],
    config: BuildConfiguration,
) -> Dict[str, Any]:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "CollectionPage",
        "name": category["name"],
        "description": category.get("description") or config.default_description,
        "url": canonical_url(category_path(category["slug"], config.base_path), config.site_url),
        "hasPart": [
            {
                "@type": "Article",
                "headline": a["title"],
                "url": canonical_url(
                    article_path(category["slug"], a["slug"], config.base_path),
                    config.site_url,
                ),
            }
            for a in articles
        ],
    }


def _article_json_ld(
    article: Dict[str, Any],
    category: Dict[str, Any],
    page_url: str,
    config: BuildConfiguration,
) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "@context": SCHEMA_CONTEXT,
        "@type": "Article",
        "headline": article["title"],
        "description": first_of(article.get("meta_description"), article.get("first_paragraph")) or "",
        "articleSection": category["name"],
        "mainEntityOfPage": page_url,
        "publisher": {"@type": "Organization", "name": config.site_name},
    }
    if article.get("author"):
        data["author"] = {"@type": "Person", "name": article["author"]}
    if article.get("published_at"):
        data["datePublished"] = article["published_at"]
    if article.get("updated_at"):
        data["dateModified"] = article["updated_at"]
    return data


def _breadcrumb_json_ld(
    article: Dict[str, Any],
    category: Dict[str, Any],
    config: BuildConfiguration,
) -> Dict[str, Any]:
    trail = [
        ("Central de Ajuda", config.base_path),
        (category["name"], category_path(category["slug"], config.base_path)),
        (article["title"], article_path(category["slug"], article["slug"], config.base_path)),
    ]
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "BreadcrumbList",
        "itemListElement": [
            {
                "@type": "ListItem",
                "position": position,
                "name": name,
                "item": canonical_url(path, config.site_url),
            }
            for position, (name, path) in enumerate(trail, start=1)
        ],
    }
