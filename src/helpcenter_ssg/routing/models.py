"""
Route Models

``RouteDescriptor`` is the unit of work for one build: the enumerator creates
them, the scheduler partitions them and the renderer turns each into a
snapshot. Descriptors are unique by ``path`` and immutable once enumerated.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RouteKind(str, Enum):
    CONTENT = "content"
    CATEGORY = "category"
    SYSTEM = "system"


class RouteDescriptor(BaseModel):
    """A single prerenderable route."""

    path: str = Field(..., min_length=1)
    kind: RouteKind
    source_id: Optional[str] = Field(
        default=None,
        description="Identifier of the category or article in the content store.",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"Route path must start with '/': {v!r}")
        if "?" in v or "#" in v:
            raise ValueError(f"Route path must not carry a query or fragment: {v!r}")
        return v
