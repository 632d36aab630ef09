"""
Supabase Content Client

This module provides the build-time content source backed by the Supabase
PostgREST API.

Design Goals
------------
- The HTTP client is injected, never a module-level singleton
- Lifecycle (creation, credentials, teardown) is owned by the caller
- Transport and decoding failures surface only as ``SourceUnavailable``
- Query ordering matches ``sort_articles`` so truncation is reproducible
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..config import Settings
from ..core.errors import SourceUnavailable
from .models import Article, Category, ContentItem, Faq

logger = logging.getLogger("ssg.supabase")

ModelT = TypeVar("ModelT", bound=BaseModel)

ARTICLE_ORDER = "published_at.desc.nullslast,id.asc"


class SupabaseContentSource:
    """
    Read-only content source over the Supabase REST endpoint.

    Use as an async context manager, or call ``aclose()`` when the client was
    created by ``from_settings``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        service_key: str,
        owns_client: bool = False,
    ) -> None:
        """
        Parameters
        ----------
        client : httpx.AsyncClient
            HTTP client used for every request.

        base_url : str
            Supabase project URL (without the ``/rest/v1`` suffix).

        service_key : str
            Service role key used for both ``apikey`` and bearer auth.

        owns_client : bool
            Close ``client`` in ``aclose()``.
        """
        if not service_key:
            raise ValueError("Supabase service key must be non-empty.")
        self._client = client
        self._rest_url = base_url.rstrip("/") + "/rest/v1"
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Accept": "application/json",
        }
        self._owns_client = owns_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseContentSource":
        if settings.supabase_service_key is None:
            raise SourceUnavailable(
                "SSG_SUPABASE_SERVICE_KEY environment variable is required for build"
            )
        client = httpx.AsyncClient(timeout=settings.content_timeout)
        return cls(
            client,
            settings.supabase_url,
            settings.supabase_service_key.get_secret_value(),
            owns_client=True,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "SupabaseContentSource":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # ContentSource API
    # ------------------------------------------------------------------

    async def list_content(self, limit: Optional[int] = None) -> List[ContentItem]:
        categories = await self.list_categories()
        params: Dict[str, Any] = {
            "status": "eq.published",
            "order": ARTICLE_ORDER,
        }
        if limit is not None:
            params["limit"] = limit
        articles = await self._select("articles", params, Article)
        logger.info(
            "Fetched %d categories and %d articles",
            len(categories),
            len(articles),
        )
        return [*categories, *articles]

    async def get_content_by_id(self, content_id: str) -> ContentItem:
        params = {"id": f"eq.{content_id}", "limit": 1}
        rows: List[ContentItem] = list(await self._select("categories", params, Category))
        if not rows:
            rows = list(await self._select("articles", params, Article))
        if not rows:
            raise KeyError(content_id)
        return rows[0]

    async def list_categories(self) -> List[Category]:
        return await self._select(
            "categories",
            {"is_active": "eq.true", "order": "position.asc,id.asc"},
            Category,
        )

    async def list_faqs(self) -> List[Faq]:
        return await self._select(
            "faqs",
            {"is_active": "eq.true", "order": "position.asc,id.asc"},
            Faq,
        )

    async def list_articles_by_category(self, category_id: str) -> List[Article]:
        return await self._select(
            "articles",
            {
                "category_id": f"eq.{category_id}",
                "status": "eq.published",
                "order": ARTICLE_ORDER,
            },
            Article,
        )

    async def get_article_by_slug(self, slug: str) -> Optional[Article]:
        rows = await self._select(
            "articles",
            {"slug": f"eq.{slug}", "status": "eq.published", "limit": 1},
            Article,
        )
        return rows[0] if rows else None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _select(
        self,
        table: str,
        params: Dict[str, Any],
        model: Type[ModelT],
    ) -> List[ModelT]:
        """
        Run a PostgREST select and validate every row.

        Raises
        ------
        SourceUnavailable
            On transport errors, non-2xx responses or malformed rows.
        """
        query = {"select": "*", **params}
        try:
            resp = await self._client.get(
                f"{self._rest_url}/{table}",
                params=query,
                headers=self._headers,
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            logger.error(
                "Content request for %s failed (%s): %s",
                table,
                type(exc).__name__,
                exc,
            )
            raise SourceUnavailable(
                f"Failed to fetch {table}: {type(exc).__name__}"
            ) from exc
        except ValueError as exc:
            raise SourceUnavailable(f"Invalid JSON in {table} response") from exc

        if not isinstance(data, list):
            raise SourceUnavailable(f"Expected a list of {table} rows, got {type(data).__name__}")

        try:
            return [model(**row) for row in data]
        except (ValidationError, TypeError) as exc:
            raise SourceUnavailable(f"Malformed {table} row: {exc}") from exc
