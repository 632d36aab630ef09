"""
Render Data Models

``RenderSnapshot`` is the frozen data-plus-markup result of rendering one
route. The build writes it to disk (markup in the page body, query results
and head metadata in the embedded state block) and then drops it.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field

from ..routing.models import RouteDescriptor


class HeadMetadata(BaseModel):
    """Document head values for one page."""

    title: str = Field(..., min_length=1)
    description: str
    canonical_url: str = Field(..., min_length=1)
    og_image: str
    og_title: str
    og_description: str
    og_type: Literal["website", "article"] = "website"
    noindex: bool = False
    json_ld: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")


class RenderSnapshot(BaseModel):
    """
    The data a single route needed to render, plus the result.

    ``query_results`` maps ``query_key_hash(key)`` to the JSON-normalized
    loader output. ``generated_at`` is informational only and never takes
    part in the markup.
    """

    route: RouteDescriptor
    query_results: Dict[str, Any]
    rendered_markup: str
    head_metadata: HeadMetadata
    generated_at: str

    model_config = ConfigDict(frozen=True, extra="forbid")
