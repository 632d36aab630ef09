"""
Data Loaders

The mapping from query key to async fetch function. The server renderer and
the hydrating client call the SAME ``DataLoaders`` instance for a route, so
the data embedded at build time is exactly what the client would fetch.

Query keys are tuples whose first element names the query and whose
remaining elements are its arguments:

    ("categories",)
    ("faqs",)
    ("articles", category_id)
    ("article", slug)
"""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable, Dict, Mapping, Sequence, Tuple

from pydantic import BaseModel

from ..core.errors import QueryNotFound
from .source import ContentSource

QueryKey = Tuple[str, ...]
Loader = Callable[..., Awaitable[Any]]


def query_key_hash(key: Sequence[Any]) -> str:
    """Stable string form of a query key, used as the snapshot mapping key."""
    return json.dumps(list(key), separators=(",", ":"), ensure_ascii=False)


def parse_query_key(key_hash: str) -> QueryKey:
    return tuple(json.loads(key_hash))


def to_json_compatible(value: Any) -> Any:
    """
    Normalize loader output to plain JSON data.

    Both the build and the client only ever see the normalized form, which is
    what makes the embedded snapshot replay to identical markup.
    """
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    elif isinstance(value, (list, tuple)):
        value = [
            item.model_dump(mode="json") if isinstance(item, BaseModel) else item
            for item in value
        ]
    return json.loads(json.dumps(value, ensure_ascii=False))


class DataLoaders:
    """Registry of query loaders keyed by query name."""

    def __init__(self, loaders: Mapping[str, Loader]) -> None:
        self._loaders: Dict[str, Loader] = dict(loaders)

    @classmethod
    def for_source(cls, source: ContentSource) -> "DataLoaders":
        return cls(
            {
                "categories": source.list_categories,
                "faqs": source.list_faqs,
                "articles": source.list_articles_by_category,
                "article": source.get_article_by_slug,
            }
        )

    def __contains__(self, key: Sequence[Any]) -> bool:
        return bool(key) and key[0] in self._loaders

    async def fetch(self, key: Sequence[Any]) -> Any:
        """
        Run the loader registered for ``key`` and normalize its result.

        Raises
        ------
        QueryNotFound
            If no loader is registered for the query name.
        """
        if not key or key[0] not in self._loaders:
            raise QueryNotFound(key)
        loader = self._loaders[key[0]]
        return to_json_compatible(await loader(*key[1:]))
