"""
Content Source Interface

The content store is an external collaborator. This module defines the
contract the pipeline relies on and an in-memory implementation used for
fixture builds and tests.

Every method may raise ``SourceUnavailable``; callers never see transport
level exceptions.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from pydantic import ValidationError

from ..core.errors import SourceUnavailable
from .models import Article, Category, ContentItem, Faq, sort_articles

logger = logging.getLogger("ssg.content")


@runtime_checkable
class ContentSource(Protocol):
    """Read-only access to the help-center content store."""

    async def list_content(self, limit: Optional[int] = None) -> List[ContentItem]:
        """
        Return all active categories followed by published articles.

        Articles are ordered newest first (ties by id) and at most ``limit``
        of them are returned when a limit is given.
        """
        ...

    async def get_content_by_id(self, content_id: str) -> ContentItem:
        ...

    async def list_categories(self) -> List[Category]:
        ...

    async def list_faqs(self) -> List[Faq]:
        ...

    async def list_articles_by_category(self, category_id: str) -> List[Article]:
        ...

    async def get_article_by_slug(self, slug: str) -> Optional[Article]:
        ...


def _sort_categories(categories: Iterable[Category]) -> List[Category]:
    return sorted(categories, key=lambda c: (c.position, c.id))


class InMemoryContentSource:
    """
    Content source backed by Python lists.

    Inactive categories and unpublished articles are filtered out the same
    way the database queries filter them.
    """

    def __init__(
        self,
        categories: Iterable[Category] = (),
        articles: Iterable[Article] = (),
        faqs: Iterable[Faq] = (),
    ) -> None:
        self._categories = _sort_categories(c for c in categories if c.is_active)
        self._articles = sort_articles(a for a in articles if a.status == "published")
        self._faqs = sorted(faqs, key=lambda f: (f.position, f.id))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryContentSource":
        try:
            return cls(
                categories=[Category(**row) for row in data.get("categories", [])],
                articles=[Article(**row) for row in data.get("articles", [])],
                faqs=[Faq(**row) for row in data.get("faqs", [])],
            )
        except (ValidationError, TypeError, AttributeError) as exc:
            raise SourceUnavailable(f"Malformed content fixture: {exc}") from exc

    @classmethod
    def from_json_file(cls, path: str | Path) -> "InMemoryContentSource":
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise SourceUnavailable(f"Cannot read content fixture {path}: {exc}") from exc
        logger.info("Loaded content fixture from %s", path)
        return cls.from_dict(data)

    # ------------------------------------------------------------------
    # ContentSource API
    # ------------------------------------------------------------------

    async def list_content(self, limit: Optional[int] = None) -> List[ContentItem]:
        articles = self._articles if limit is None else self._articles[:limit]
        return [*self._categories, *articles]

    async def get_content_by_id(self, content_id: str) -> ContentItem:
        for item in (*self._categories, *self._articles):
            if item.id == content_id:
                return item
        raise KeyError(content_id)

    async def list_categories(self) -> List[Category]:
        return list(self._categories)

    async def list_faqs(self) -> List[Faq]:
        return list(self._faqs)

    async def list_articles_by_category(self, category_id: str) -> List[Article]:
        return [a for a in self._articles if a.category_id == category_id]

    async def get_article_by_slug(self, slug: str) -> Optional[Article]:
        for article in self._articles:
            if article.slug == slug:
                return article
        return None
