"""
URL helpers for the category/article ("silo") URL scheme.

    /{category_slug}/                 category page
    /{category_slug}/{article_slug}   article page

All helpers take an optional ``base_path`` so the site can be mounted under a
prefix such as ``/ajuda/``.
"""

from __future__ import annotations

import re
from typing import FrozenSet, Iterable, List, Optional

# Reserved first segments that can never be category slugs
RESERVED_PATHS: FrozenSet[str] = frozenset(
    {
        "buscar",
        "sitemap.xml",
        "robots.txt",
        "faq",
        "termos-de-uso",
        "termo-de-consentimento",
        "assets",
        "api",
        "admin",
        "gone",
        "favicon.ico",
        "manifest.json",
        "_next",
        "static",
        "public",
        "404",
    }
)

# Pre-silo URL prefixes: /categoria/{slug} and /artigo/{slug}
LEGACY_CATEGORY_PREFIX = "categoria"
LEGACY_ARTICLE_PREFIX = "artigo"

NOT_FOUND_SEGMENT = "404"

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def is_reserved_slug(slug: str) -> bool:
    return slug.lower() in RESERVED_PATHS


def is_valid_slug(slug: str) -> bool:
    """Lowercase kebab-case, ASCII letters and digits only."""
    return bool(slug) and bool(SLUG_PATTERN.match(slug))


def category_path(category_slug: str, base_path: str = "/") -> str:
    if not category_slug:
        return base_path
    return f"{base_path}{category_slug}/"


def article_path(category_slug: str, article_slug: str, base_path: str = "/") -> str:
    if not category_slug or not article_slug:
        return base_path
    return f"{base_path}{category_slug}/{article_slug}"


def relative_to_base(path: str, base_path: str = "/") -> Optional[str]:
    """
    Strip ``base_path`` from ``path``.

    Returns the remainder with a leading ``/``, or None when ``path`` lies
    outside the base.
    """
    if base_path == "/":
        return path
    if path.startswith(base_path):
        return "/" + path[len(base_path):]
    return None


def path_segments(path: str) -> List[str]:
    return [segment for segment in path.strip("/").split("/") if segment]


def matches_prefix(path: str, prefix: str) -> bool:
    """Prefix match on segment boundaries: ``/admin`` matches ``/admin/x``, not ``/administrar``."""
    prefix = prefix.rstrip("/")
    if not prefix:
        return True
    return path == prefix or path.startswith(prefix + "/")


def is_excluded(path: str, excluded: Iterable[str], base_path: str = "/") -> bool:
    """True if ``path`` (absolute or relative to ``base_path``) matches an excluded prefix."""
    candidates = [path]
    relative = relative_to_base(path, base_path)
    if relative is not None and relative != path:
        candidates.append(relative)
    return any(matches_prefix(candidate, prefix) for prefix in excluded for candidate in candidates)


def canonical_url(path: str, site_url: str) -> str:
    clean_site = site_url.rstrip("/")
    clean_path = path if path.startswith("/") else f"/{path}"
    return f"{clean_site}{clean_path}"
