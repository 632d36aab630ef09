"""
HTML Document Template

Wraps a snapshot's body markup in a full HTML document: head tags from
``HeadMetadata`` and the client bundle's asset tags, taken from the
``index.html`` shell the client build produced.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import List

from ..config import BuildConfiguration
from .markup import esc
from .models import RenderSnapshot

ROOT_OPEN = '<div id="root">'

_ATTR_VALUE = r"""(?:"[^"]+"|'[^']+'|[^\s"'>]+)"""


# Attribute values may be double-quoted, single-quoted or bare
def _link_re(rel: str) -> "re.Pattern[str]":
    return re.compile(
        r"""<link\b[^>]*?\brel=(["']?)""" + rel + r"""\1(?=[\s/>])[^>]*>""",
        re.IGNORECASE,
    )


_STYLESHEET_RE = _link_re("stylesheet")
_PRELOAD_RE = _link_re("modulepreload")
_MODULE_SCRIPT_RE = re.compile(
    r"<script\b[^>]*?\bsrc=" + _ATTR_VALUE + r"[^>]*>\s*</script>",
    re.IGNORECASE,
)


@dataclass
class ClientAssets:
    """Asset tags of the client bundle, copied verbatim into every page."""

    css_links: List[str] = field(default_factory=list)
    js_scripts: List[str] = field(default_factory=list)


def extract_client_assets(shell_html: str) -> ClientAssets:
    """Collect stylesheet, module preload and script tags from the client shell."""
    return ClientAssets(
        css_links=_tags(_STYLESHEET_RE, shell_html) + _tags(_PRELOAD_RE, shell_html),
        js_scripts=_tags(_MODULE_SCRIPT_RE, shell_html),
    )


def _tags(pattern: "re.Pattern[str]", html: str) -> List[str]:
    return [match.group(0) for match in pattern.finditer(html)]


def render_document(
    snapshot: RenderSnapshot,
    config: BuildConfiguration,
    assets: ClientAssets | None = None,
) -> str:
    """Return the complete HTML page for ``snapshot`` (without embedded state)."""
    assets = assets or ClientAssets()
    head = snapshot.head_metadata
    robots = "noindex, nofollow" if head.noindex else "index, follow"

    json_ld = ""
    if head.json_ld:
        payload = head.json_ld[0] if len(head.json_ld) == 1 else head.json_ld
        serialized = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
        serialized = serialized.replace("</", "<\\/")
        json_ld = f'<script type="application/ld+json">{serialized}</script>'

    css = "\n  ".join(assets.css_links)
    scripts = "\n  ".join(assets.js_scripts)

    return f"""<!DOCTYPE html>
<html lang="pt-BR">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{esc(head.title)}</title>
  <meta name="description" content="{esc(head.description)}" />
  <meta name="robots" content="{robots}" />
  <link rel="canonical" href="{esc(head.canonical_url)}" />
  <meta property="og:type" content="{head.og_type}" />
  <meta property="og:title" content="{esc(head.og_title)}" />
  <meta property="og:description" content="{esc(head.og_description)}" />
  <meta property="og:image" content="{esc(head.og_image)}" />
  <meta property="og:url" content="{esc(head.canonical_url)}" />
  <meta property="og:site_name" content="{esc(config.site_name)}" />
  <meta property="og:locale" content="pt_BR" />
  <meta name="twitter:card" content="summary_large_image" />
  <meta name="twitter:title" content="{esc(head.og_title)}" />
  <meta name="twitter:description" content="{esc(head.og_description)}" />
  <meta name="twitter:image" content="{esc(head.og_image)}" />
  <link rel="icon" type="image/svg+xml" href="/favicon.svg" />
  <link rel="manifest" href="/manifest.json" />
  {json_ld}
  {css}
</head>
<body>
  {ROOT_OPEN}{snapshot.rendered_markup}</div>
  {scripts}
</body>
</html>
"""


def extract_root_markup(page_html: str) -> str:
    """
    Return the markup inside ``<div id="root">`` of a page from ``render_document``.

    Raises
    ------
    ValueError
        If the page has no root container.
    """
    start = page_html.find(ROOT_OPEN)
    if start < 0:
        raise ValueError("Page has no root container")
    start += len(ROOT_OPEN)
    body_end = page_html.rfind("</body>")
    end = page_html.rfind("</div>", start, body_end if body_end >= 0 else len(page_html))
    if end < 0:
        raise ValueError("Root container is not closed")
    return page_html[start:end]
