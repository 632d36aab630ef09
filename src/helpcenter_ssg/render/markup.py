"""
Page Markup

Pure functions from (route, query results) to the page body markup. The
server renderer and the hydrating client both call ``render_markup`` with a
reader over the same query results, which is what keeps the first client
render identical to the served HTML.

Nothing in here may read clocks, random sources or the environment.
"""

from __future__ import annotations

import html
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..config import BuildConfiguration
from ..content.loaders import QueryKey, query_key_hash
from ..routing.models import RouteDescriptor, RouteKind
from ..routing.urls import article_path, category_path, path_segments, relative_to_base

Reader = Callable[[QueryKey], Any]

CATEGORIES_QUERY: QueryKey = ("categories",)
FAQS_QUERY: QueryKey = ("faqs",)


def esc(value: Any) -> str:
    return html.escape(str(value)) if value else ""


# ---------------------------------------------------------------------
# Route inspection
# ---------------------------------------------------------------------

def is_home(route: RouteDescriptor, config: BuildConfiguration) -> bool:
    return route.path in (config.base_path, "/")


def route_slugs(route: RouteDescriptor, config: BuildConfiguration) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(category_slug, article_slug)`` for a route path."""
    relative = relative_to_base(route.path, config.base_path)
    segments = path_segments(relative if relative is not None else route.path)
    category_slug = segments[0] if segments else None
    article_slug = segments[1] if len(segments) > 1 else None
    return category_slug, article_slug


def find_category(categories: Sequence[Dict[str, Any]], slug: Optional[str]) -> Optional[Dict[str, Any]]:
    for category in categories:
        if category.get("slug") == slug:
            return category
    return None


def plan_queries(
    route: RouteDescriptor,
    known: Mapping[str, Any],
    config: BuildConfiguration,
) -> List[QueryKey]:
    """
    Query keys a route needs, given the results resolved so far.

    Category-scoped queries depend on the category list, so callers resolve
    in rounds until the plan stops growing.
    """
    keys: List[QueryKey] = [CATEGORIES_QUERY]
    if route.kind is RouteKind.SYSTEM:
        if is_home(route, config):
            keys.append(FAQS_QUERY)
        return keys

    category_slug, article_slug = route_slugs(route, config)
    if route.kind is RouteKind.CONTENT and article_slug:
        keys.append(("article", article_slug))

    categories = known.get(query_key_hash(CATEGORIES_QUERY))
    if categories is not None:
        category = find_category(categories, category_slug)
        if category is not None:
            keys.append(("articles", category["id"]))
    return keys


# ---------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------

def render_markup(route: RouteDescriptor, read: Reader, config: BuildConfiguration) -> str:
    """
    Render the body markup for ``route``.

    Raises
    ------
    LookupError
        If the category or article the route addresses does not exist.
    """
    categories = read(CATEGORIES_QUERY)

    if route.kind is RouteKind.SYSTEM:
        if is_home(route, config):
            return _render_home(categories, read(FAQS_QUERY), config)
        return _render_system(route, categories, config)

    category_slug, article_slug = route_slugs(route, config)
    category = find_category(categories, category_slug)
    if category is None:
        raise LookupError(f"Unknown category '{category_slug}'")
    articles = read(("articles", category["id"]))

    if route.kind is RouteKind.CATEGORY:
        return _render_category(category, articles, config)

    article = read(("article", article_slug))
    if article is None:
        raise LookupError(f"Unknown article '{article_slug}'")
    if article.get("category_id") != category["id"]:
        raise LookupError(
            f"Article '{article_slug}' does not belong to category '{category_slug}'"
        )
    related = [a for a in articles if a.get("id") != article.get("id")]
    return _render_article(article, category, related[: config.related_articles_limit], config)


def _header(config: BuildConfiguration) -> str:
    return (
        f'<header class="site-header"><a class="brand" href="{esc(config.base_path)}">'
        f"{esc(config.site_name)}</a></header>"
    )


def _breadcrumbs(config: BuildConfiguration, trail: Sequence[Tuple[str, str]]) -> str:
    items = [f'<li><a href="{esc(config.base_path)}">Central de Ajuda</a></li>']
    for href, label in trail:
        items.append(f'<li><a href="{esc(href)}">{esc(label)}</a></li>')
    return f'<nav class="breadcrumbs" aria-label="breadcrumb"><ol>{"".join(items)}</ol></nav>'


def _article_list(articles: Sequence[Dict[str, Any]], category_slug: str, config: BuildConfiguration) -> str:
    if not articles:
        return '<p class="empty">Nenhum artigo publicado nesta categoria.</p>'
    items = []
    for article in articles:
        href = article_path(category_slug, article["slug"], config.base_path)
        summary = article.get("first_paragraph") or article.get("meta_description") or ""
        items.append(
            f'<li class="article-item"><a href="{esc(href)}">{esc(article["title"])}</a>'
            f"<p>{esc(summary)}</p></li>"
        )
    return f'<ul class="article-list">{"".join(items)}</ul>'


def _render_home(
    categories: Sequence[Dict[str, Any]],
    faqs: Sequence[Dict[str, Any]],
    config: BuildConfiguration,
) -> str:
    category_items = "".join(
        f'<li class="category-card"><a href="{esc(category_path(c["slug"], config.base_path))}">'
        f'<h3>{esc(c["name"])}</h3><p>{esc(c.get("description"))}</p></a></li>'
        for c in categories
    )
    faq_items = "".join(
        f'<div class="faq-item"><dt>{esc(f["question"])}</dt><dd>{esc(f.get("answer"))}</dd></div>'
        for f in faqs
    )
    return "\n".join(
        [
            _header(config),
            '<main id="main-content">',
            f'<section class="hero"><h1>{esc(config.default_title)}</h1>'
            f"<p>{esc(config.default_description)}</p></section>",
            f'<section class="categories"><h2>Categorias</h2><ul class="category-grid">{category_items}</ul></section>',
            f'<section class="faq"><h2>Perguntas frequentes</h2><dl>{faq_items}</dl></section>',
            "</main>",
        ]
    )


def _render_category(
    category: Dict[str, Any],
    articles: Sequence[Dict[str, Any]],
    config: BuildConfiguration,
) -> str:
    href = category_path(category["slug"], config.base_path)
    return "\n".join(
        [
            _header(config),
            '<main id="main-content">',
            _breadcrumbs(config, [(href, category["name"])]),
            f'<section class="category" data-category="{esc(category["slug"])}">'
            f'<h1>{esc(category["name"])}</h1><p>{esc(category.get("description"))}</p>',
            _article_list(articles, category["slug"], config),
            "</section>",
            "</main>",
        ]
    )


def _render_article(
    article: Dict[str, Any],
    category: Dict[str, Any],
    related: Sequence[Dict[str, Any]],
    config: BuildConfiguration,
) -> str:
    category_href = category_path(category["slug"], config.base_path)
    article_href = article_path(category["slug"], article["slug"], config.base_path)

    meta = []
    if article.get("author"):
        meta.append(f'<span class="author">{esc(article["author"])}</span>')
    if article.get("published_at"):
        date = article["published_at"][:10]
        meta.append(f'<time datetime="{esc(date)}">{esc(date)}</time>')
    if article.get("reading_time_minutes"):
        meta.append(f'<span class="reading-time">{article["reading_time_minutes"]} min de leitura</span>')

    parts = [
        _header(config),
        '<main id="main-content">',
        _breadcrumbs(config, [(category_href, category["name"]), (article_href, article["title"])]),
        f'<article class="article" data-article="{esc(article["slug"])}">',
        f'<h1>{esc(article["title"])}</h1>',
        f'<div class="article-meta">{"".join(meta)}</div>',
        # Article bodies are authored HTML from the CMS
        f'<div class="article-content">{article.get("content") or ""}</div>',
        "</article>",
    ]
    if related:
        parts.append(
            '<aside class="related"><h2>Artigos relacionados</h2>'
            + _article_list(related, category["slug"], config)
            + "</aside>"
        )
    parts.append("</main>")
    return "\n".join(parts)


def _render_system(
    route: RouteDescriptor,
    categories: Sequence[Dict[str, Any]],
    config: BuildConfiguration,
) -> str:
    links = "".join(
        f'<li><a href="{esc(category_path(c["slug"], config.base_path))}">{esc(c["name"])}</a></li>'
        for c in categories
    )
    return "\n".join(
        [
            _header(config),
            f'<main id="main-content" data-path="{esc(route.path)}">',
            f"<h1>{esc(config.site_name)}</h1>",
            f'<nav class="category-links"><ul>{links}</ul></nav>',
            "</main>",
        ]
    )
