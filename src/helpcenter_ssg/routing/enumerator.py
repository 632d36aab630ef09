"""
Route Enumerator

Produces the bounded, deduplicated list of canonical routes to prerender:

- the site root
- every active category            ``/{category}/``
- up to ``max_articles`` articles  ``/{category}/{article}``
- configured extra routes

Paths under ``excluded_routes`` are never emitted, and every emitted path is
already in canonical form. A source failure aborts enumeration: a partial
route list would silently drop pages from the output and the sitemap.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from ..config import BuildConfiguration
from ..content.models import Article, Category, sort_articles
from ..content.source import ContentSource
from ..core.errors import SourceUnavailable
from .canonical import URLCanonicalizer
from .models import RouteDescriptor, RouteKind
from .urls import (
    article_path,
    category_path,
    is_excluded,
    is_reserved_slug,
    path_segments,
    relative_to_base,
)

logger = logging.getLogger("ssg.enumerator")


class _RouteSet:
    """Ordered, canonical, deduplicated route accumulator."""

    def __init__(self, config: BuildConfiguration, canonicalizer: URLCanonicalizer) -> None:
        self._config = config
        self._canonicalizer = canonicalizer
        self._routes: Dict[str, RouteDescriptor] = {}

    def add(self, path: str, kind: RouteKind, source_id: Optional[str] = None) -> bool:
        path = self._canonicalizer.canonical_path(path)
        # Article pages are files, never directories
        if kind is RouteKind.CONTENT:
            path = path.rstrip("/")
        if is_excluded(path, self._config.excluded_routes, self._config.base_path):
            logger.debug("Skipping excluded route %s", path)
            return False
        # Paths differing only by a trailing slash are the same page
        key = path.rstrip("/") or "/"
        if key in self._routes:
            return False
        self._routes[key] = RouteDescriptor(path=path, kind=kind, source_id=source_id)
        return True

    @property
    def routes(self) -> List[RouteDescriptor]:
        return list(self._routes.values())


def classify_path(path: str, config: BuildConfiguration) -> RouteKind:
    """Route kind implied by the shape of a path below the base path."""
    relative = relative_to_base(path, config.base_path)
    if relative is None:
        return RouteKind.SYSTEM
    segments = path_segments(relative)
    if len(segments) == 1 and not is_reserved_slug(segments[0]):
        return RouteKind.CATEGORY
    if len(segments) == 2 and not is_reserved_slug(segments[0]):
        return RouteKind.CONTENT
    return RouteKind.SYSTEM


def enumerate_paths(
    paths: Iterable[str],
    config: BuildConfiguration,
    canonicalizer: Optional[URLCanonicalizer] = None,
) -> List[RouteDescriptor]:
    """Canonicalize, filter and deduplicate an explicit list of paths."""
    canonicalizer = canonicalizer or URLCanonicalizer.from_config(config)
    route_set = _RouteSet(config, canonicalizer)
    for path in paths:
        canonical = canonicalizer.canonical_path(path)
        route_set.add(canonical, classify_path(canonical, config))
    return route_set.routes


async def enumerate_routes(
    source: ContentSource,
    config: BuildConfiguration,
    canonicalizer: Optional[URLCanonicalizer] = None,
) -> List[RouteDescriptor]:
    """
    Enumerate every route to prerender from the content source.

    Raises
    ------
    SourceUnavailable
        If the content source cannot be read. Fatal for the build.
    """
    canonicalizer = canonicalizer or URLCanonicalizer.from_config(config)

    # One extra article tells us whether the cap truncated anything
    try:
        items = await source.list_content(limit=config.max_articles + 1)
    except SourceUnavailable:
        raise
    except Exception as exc:
        raise SourceUnavailable(f"Content source failed: {type(exc).__name__}: {exc}") from exc

    categories = [item for item in items if isinstance(item, Category)]
    articles = sort_articles(item for item in items if isinstance(item, Article))

    if len(articles) > config.max_articles:
        logger.warning(
            "Content source has more than %d articles; prerendering the %d most recent",
            config.max_articles,
            config.max_articles,
        )
        articles = articles[: config.max_articles]

    route_set = _RouteSet(config, canonicalizer)
    route_set.add(config.base_path, RouteKind.SYSTEM)

    categories_by_id: Dict[str, Category] = {}
    for category in sorted(categories, key=lambda c: (c.position, c.id)):
        if not category.is_active:
            continue
        if is_reserved_slug(category.slug):
            logger.warning(
                "Category '%s' uses reserved slug '%s'; not prerendered",
                category.name,
                category.slug,
            )
            continue
        categories_by_id[category.id] = category
        route_set.add(category_path(category.slug, config.base_path), RouteKind.CATEGORY, category.id)

    for article in articles:
        category = categories_by_id.get(article.category_id)
        if category is None:
            logger.warning(
                "Article '%s' has no prerenderable category (%s); skipped",
                article.slug,
                article.category_id,
            )
            continue
        route_set.add(
            article_path(category.slug, article.slug, config.base_path),
            RouteKind.CONTENT,
            article.id,
        )

    content_count = sum(1 for r in route_set.routes if r.kind is RouteKind.CONTENT)
    for path in config.extra_routes:
        canonical = canonicalizer.canonical_path(path)
        kind = classify_path(canonical, config)
        if kind is RouteKind.CONTENT and content_count >= config.max_articles:
            logger.warning("Extra route %s exceeds the article cap; skipped", canonical)
            continue
        if route_set.add(canonical, kind) and kind is RouteKind.CONTENT:
            content_count += 1

    routes = route_set.routes
    logger.info(
        "Enumerated %d routes (%d categories, %d articles)",
        len(routes),
        sum(1 for r in routes if r.kind is RouteKind.CATEGORY),
        sum(1 for r in routes if r.kind is RouteKind.CONTENT),
    )
    return routes
