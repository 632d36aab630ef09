"""
Content Data Models

Rows read from the help-center content store. These models are the
authoritative schema for:
- Route enumeration (slugs, ordering keys)
- Data loader results embedded into prerendered pages
- Head metadata fallbacks

Backend rows carry many more columns than the pipeline needs, so unknown
fields are ignored rather than rejected.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Category(BaseModel):
    """An active help-center category, addressed as ``/{slug}/``."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    description: Optional[str] = None
    icon_url: Optional[str] = None
    position: int = 0
    is_active: bool = True
    updated_at: Optional[str] = Field(
        default=None,
        description="ISO 8601 timestamp of the last change.",
    )

    model_config = ConfigDict(extra="ignore", frozen=True)


class Article(BaseModel):
    """A help article, addressed as ``/{category_slug}/{slug}``."""

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    content: str = ""
    first_paragraph: Optional[str] = None

    # Page-specific SEO overrides
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    og_image: Optional[str] = None
    canonical_url: Optional[str] = None
    noindex: bool = False

    author: Optional[str] = None
    published_at: Optional[str] = None
    updated_at: Optional[str] = None
    reading_time_minutes: Optional[int] = None
    status: str = "published"

    model_config = ConfigDict(extra="ignore", frozen=True)


class Faq(BaseModel):
    """A frequently asked question shown on the home page."""

    id: str = Field(..., min_length=1)
    question: str = Field(..., min_length=1)
    answer: str = ""
    category: Optional[str] = None
    position: int = 0

    model_config = ConfigDict(extra="ignore", frozen=True)


ContentItem = Union[Category, Article]


def sort_articles(articles: Iterable[Article]) -> List[Article]:
    """
    Deterministic ordering for articles: newest first, ties by ascending id.

    ``published_at`` is ISO 8601, so comparing the strings orders them in
    time. Articles without a publication date sort last.
    """
    ordered = sorted(articles, key=lambda a: a.id)
    # list.sort is stable with reverse=True, so the id order survives ties
    ordered.sort(key=lambda a: a.published_at or "", reverse=True)
    return ordered
