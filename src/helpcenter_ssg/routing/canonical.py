"""
URL Canonicalizer

Classifies an incoming path as reserved (system route) or content
addressable, and redirects the non-canonical single-segment form
``/segment`` to ``/segment/`` so a category page is never served under two
addresses.

Rules
-----
- Legacy addresses are redirected first when a ``SlugIndex`` is given:
  ``/categoria/{slug}`` to ``/{slug}/`` for a known category and
  ``/artigo/{slug}`` to ``/{category}/{slug}`` for a known article.
- A two-segment path under a reserved first segment (``/faq/x``) is
  replaced by ``/404``.
- Paths ending in ``/`` are already canonical.
- Reserved first segments (``RESERVED_PATHS``) and excluded prefixes are
  never redirected.
- Only a single non-empty segment relative to the base path, without a
  query, fragment or file extension, is redirected.
- Multi-segment paths (articles) are left alone.
- Decisions are pure functions of the path, the reserved set and the slug
  index, and canonicalizing a canonical path is a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Protocol, Sequence, Union

from ..config import BuildConfiguration
from ..core.errors import RedirectLoop
from .urls import (
    LEGACY_ARTICLE_PREFIX,
    LEGACY_CATEGORY_PREFIX,
    NOT_FOUND_SEGMENT,
    RESERVED_PATHS,
    article_path,
    category_path,
    is_excluded,
    is_valid_slug,
    path_segments,
    relative_to_base,
)

logger = logging.getLogger("ssg.canonical")


# ---------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class NoAction:
    """The path is canonical (or not ours to touch)."""


@dataclass(frozen=True)
class RedirectTo:
    """Replace the current location with ``path``."""

    path: str


CanonicalizationDecision = Union[NoAction, RedirectTo]


# ---------------------------------------------------------------------
# Slug lookups for legacy addresses
# ---------------------------------------------------------------------

class SlugIndex:
    """Known category slugs and the category slug of each article slug."""

    def __init__(
        self,
        categories: Iterable[str] = (),
        article_categories: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._categories = frozenset(categories)
        self._article_categories = dict(article_categories or {})

    @classmethod
    def from_dist(cls, dist_dir: Union[str, Path]) -> "SlugIndex":
        """
        Index of a finished build.

        ``{category}/index.html`` marks a category and ``{category}/{slug}.html``
        an article.
        """
        root = Path(dist_dir)
        if not root.is_dir():
            return cls()
        categories = [page.parent.name for page in sorted(root.glob("*/index.html"))]
        articles: dict = {}
        for page in sorted(root.glob("*/*.html")):
            if page.name != "index.html":
                articles.setdefault(page.stem, page.parent.name)
        return cls(categories, articles)

    def has_category(self, slug: str) -> bool:
        return slug in self._categories

    def category_of(self, article_slug: str) -> Optional[str]:
        return self._article_categories.get(article_slug)


# ---------------------------------------------------------------------
# Canonicalizer
# ---------------------------------------------------------------------

class URLCanonicalizer:
    """Pure path canonicalization for one site configuration."""

    def __init__(
        self,
        reserved: Iterable[str] = RESERVED_PATHS,
        reserved_prefixes: Iterable[str] = (),
        base_path: str = "/",
        slugs: Optional[SlugIndex] = None,
    ) -> None:
        """
        Parameters
        ----------
        reserved : Iterable[str]
            First path segments owned by the system (search, sitemap, ...).

        reserved_prefixes : Iterable[str]
            Absolute path prefixes never redirected (admin/auth pages).

        base_path : str
            Mount point of the site, ending with ``/``.

        slugs : Optional[SlugIndex]
            Known categories and articles. Without it legacy addresses are
            not redirected.
        """
        self._reserved = frozenset(s.lower() for s in reserved)
        self._reserved_prefixes = tuple(reserved_prefixes)
        self._base_path = base_path
        self._slugs = slugs

    @classmethod
    def from_config(
        cls,
        config: BuildConfiguration,
        slugs: Optional[SlugIndex] = None,
    ) -> "URLCanonicalizer":
        return cls(
            reserved_prefixes=config.excluded_routes,
            base_path=config.base_path,
            slugs=slugs,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def is_reserved(self, path: str) -> bool:
        if path.endswith("/"):
            return True
        if is_excluded(path, self._reserved_prefixes, self._base_path):
            return True
        relative = relative_to_base(path, self._base_path)
        if relative is None:
            return False
        first = relative.lstrip("/").split("/", 1)[0]
        return first.lower() in self._reserved

    def canonicalize(self, path: str) -> CanonicalizationDecision:
        decision = self._decide(path)
        if isinstance(decision, RedirectTo):
            try:
                self._ensure_terminal(path, decision.path)
            except RedirectLoop as exc:
                logger.warning("%s; leaving %s untouched", exc, path)
                return NoAction()
        return decision

    def canonical_path(self, path: str) -> str:
        decision = self.canonicalize(path)
        return decision.path if isinstance(decision, RedirectTo) else path

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _decide(self, path: str) -> CanonicalizationDecision:
        if not path.startswith("/") or "?" in path or "#" in path:
            return NoAction()
        if is_excluded(path, self._reserved_prefixes, self._base_path):
            return NoAction()

        relative = relative_to_base(path, self._base_path)
        if relative is not None:
            legacy = self._legacy_decision(path_segments(relative))
            if legacy is not None:
                return legacy

        if self.is_reserved(path):
            return NoAction()

        # The mount point itself without its trailing slash
        if self._base_path != "/" and path == self._base_path.rstrip("/"):
            return RedirectTo(self._base_path)

        if relative is None:
            return NoAction()

        segment = relative[1:]
        if not segment or "/" in segment or "." in segment:
            return NoAction()
        return RedirectTo(path + "/")

    def _legacy_decision(self, segments: Sequence[str]) -> Optional[RedirectTo]:
        if len(segments) != 2:
            return None
        prefix, slug = segments[0].lower(), segments[1]

        if prefix == LEGACY_CATEGORY_PREFIX and self._slugs is not None:
            if slug.lower() not in self._reserved and self._slugs.has_category(slug):
                return RedirectTo(category_path(slug, self._base_path))

        if prefix == LEGACY_ARTICLE_PREFIX and self._slugs is not None:
            category = self._slugs.category_of(slug)
            if category and category.lower() not in self._reserved:
                return RedirectTo(article_path(category, slug, self._base_path))

        # A silo address whose category slug belongs to the system
        if prefix in self._reserved and is_valid_slug(slug):
            return RedirectTo(self._base_path + NOT_FOUND_SEGMENT)
        return None

    def _ensure_terminal(self, path: str, target: str) -> None:
        if target == path or isinstance(self._decide(target), RedirectTo):
            raise RedirectLoop(path, target)


# ---------------------------------------------------------------------
# Client-side navigation
# ---------------------------------------------------------------------

class Navigator(Protocol):
    """Client history operations used by the router."""

    @property
    def current_path(self) -> str:
        ...

    def push(self, path: str) -> None:
        ...

    def replace(self, path: str) -> None:
        ...


class History:
    """In-memory browser history with push/replace semantics."""

    def __init__(self, initial_path: str = "/") -> None:
        self.entries: List[str] = [initial_path]
        self._index = 0

    @property
    def current_path(self) -> str:
        return self.entries[self._index]

    def push(self, path: str) -> None:
        del self.entries[self._index + 1:]
        self.entries.append(path)
        self._index = len(self.entries) - 1

    def replace(self, path: str) -> None:
        self.entries[self._index] = path

    def back(self) -> Optional[str]:
        if self._index == 0:
            return None
        self._index -= 1
        return self.current_path


class ClientRouter:
    """
    Runs the canonicalizer on every client-side route change.

    Redirects use ``navigator.replace`` so the non-canonical address never
    gets its own history entry.
    """

    def __init__(self, canonicalizer: URLCanonicalizer, navigator: Navigator) -> None:
        self._canonicalizer = canonicalizer
        self._navigator = navigator

    def navigate(self, path: str) -> str:
        self._navigator.push(path)
        return self.on_route_change(path)

    def on_route_change(self, path: str) -> str:
        decision = self._canonicalizer.canonicalize(path)
        if isinstance(decision, RedirectTo):
            logger.debug("Canonical redirect %s -> %s", path, decision.path)
            self._navigator.replace(decision.path)
            return decision.path
        return path
