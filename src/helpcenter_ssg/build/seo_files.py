"""
sitemap.xml and robots.txt for the prerendered site.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional
from xml.sax.saxutils import escape

from ..config import BuildConfiguration
from ..routing.models import RouteDescriptor, RouteKind
from ..routing.urls import is_excluded

_PRIORITY = {
    RouteKind.SYSTEM: "1.0",
    RouteKind.CATEGORY: "0.8",
    RouteKind.CONTENT: "0.6",
}


def build_sitemap(
    routes: Iterable[RouteDescriptor],
    config: BuildConfiguration,
    lastmod: Optional[str] = None,
) -> str:
    """
    Sitemap of ``routes`` in the given order.

    Excluded routes are never listed; the caller passes only routes that
    rendered successfully.
    """
    lastmod = lastmod or datetime.now(timezone.utc).strftime("%Y-%m-%d")
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
    ]
    for route in routes:
        if is_excluded(route.path, config.excluded_routes, config.base_path):
            continue
        loc = escape(config.absolute_url(route.path))
        lines.append(
            f"  <url><loc>{loc}</loc><lastmod>{lastmod}</lastmod>"
            f"<priority>{_PRIORITY[route.kind]}</priority></url>"
        )
    lines.append("</urlset>")
    return "\n".join(lines) + "\n"


def build_robots(config: BuildConfiguration) -> str:
    lines = ["User-agent: *", f"Allow: {config.base_path}"]
    for prefix in config.excluded_routes:
        lines.append(f"Disallow: {prefix.rstrip('/')}/")
    lines.append("")
    lines.append(f"Sitemap: {config.absolute_url(config.base_path + 'sitemap.xml')}")
    return "\n".join(lines) + "\n"
