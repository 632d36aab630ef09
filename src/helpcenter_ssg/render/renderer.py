"""
Server Renderer

Turns one ``RouteDescriptor`` into a ``RenderSnapshot``:

1. Resolve the route's queries with the shared ``DataLoaders`` (the same
   mapping the client uses), in rounds, because category-scoped queries
   need the category list first.
2. Render the body markup as a pure function of the resolved data.
3. Compute head metadata from the same data.

The renderer performs no I/O besides the loaders and never writes files.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from ..config import BuildConfiguration
from ..content.loaders import DataLoaders, QueryKey, query_key_hash
from ..core.errors import RenderError, SourceUnavailable
from ..routing.models import RouteDescriptor
from .head import build_head
from .markup import plan_queries, render_markup
from .models import RenderSnapshot

logger = logging.getLogger("ssg.renderer")

# Upper bound on dependent query rounds for a single route
MAX_QUERY_ROUNDS = 4


def results_reader(results: Dict[str, Any]):
    """Reader over resolved query results, keyed by ``query_key_hash``."""

    def read(key: QueryKey) -> Any:
        return results[query_key_hash(key)]

    return read


class ServerRenderer:
    """Renders routes for one build configuration."""

    def __init__(self, config: BuildConfiguration) -> None:
        self._config = config

    async def resolve_queries(
        self,
        descriptor: RouteDescriptor,
        loaders: DataLoaders,
    ) -> Dict[str, Any]:
        """Fetch every query the route's markup will read."""
        results: Dict[str, Any] = {}
        for _ in range(MAX_QUERY_ROUNDS):
            missing = [
                key
                for key in plan_queries(descriptor, results, self._config)
                if query_key_hash(key) not in results
            ]
            if not missing:
                return results
            values = await asyncio.gather(*(loaders.fetch(key) for key in missing))
            for key, value in zip(missing, values):
                results[query_key_hash(key)] = value
        raise RuntimeError(f"Query plan for {descriptor.path} did not settle")

    async def render_route(
        self,
        descriptor: RouteDescriptor,
        loaders: DataLoaders,
    ) -> RenderSnapshot:
        """
        Render ``descriptor`` to a snapshot.

        Raises
        ------
        RenderError
            If any loader fails, the addressed content does not exist or the
            markup cannot be produced.

        SourceUnavailable
            If a loader lost the content source. Not specific to the route.
        """
        try:
            results = await self.resolve_queries(descriptor, loaders)
            read = results_reader(results)
            markup = render_markup(descriptor, read, self._config)
            head = build_head(descriptor, read, self._config)
        except (RenderError, SourceUnavailable):
            raise
        except Exception as exc:
            raise RenderError(descriptor.path, exc) from exc

        logger.debug("Rendered %s (%d chars)", descriptor.path, len(markup))
        return RenderSnapshot(
            route=descriptor,
            query_results=results,
            rendered_markup=markup,
            head_metadata=head,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )
