"""
Hydration Data Bridge (client side)

``HydratedQueryClient`` is the per-page query cache the client starts from.
It replays the embedded snapshot as initial state so the first client render
reproduces the served markup exactly, then lets the page go live.

State machine (one-way, per page instance):

    HYDRATING --mark_mounted()--> HYDRATED --first completed refetch--> LIVE

- HYDRATING: every read returns the snapshot value, even while a request
  is in flight. Results that complete now are buffered.
- HYDRATED: snapshot data counts as fresh indefinitely; nothing refetches
  on mount. Window focus and explicit refetches are allowed.
- LIVE: the snapshot status is dropped for the whole page; reads return
  network data where it exists.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, List, Set

from ..config import BuildConfiguration
from ..content.loaders import DataLoaders, QueryKey, parse_query_key, query_key_hash
from ..render.markup import render_markup
from ..routing.models import RouteDescriptor
from .bridge import EmbeddedState, extract_embedded

logger = logging.getLogger("ssg.hydration")


class HydrationState(str, Enum):
    HYDRATING = "hydrating"
    HYDRATED = "hydrated"
    LIVE = "live"


_STATE_ORDER = {
    HydrationState.HYDRATING: 0,
    HydrationState.HYDRATED: 1,
    HydrationState.LIVE: 2,
}


class HydratedQueryClient:
    """Query cache seeded from an embedded snapshot."""

    def __init__(self, embedded: EmbeddedState, loaders: DataLoaders) -> None:
        self._embedded = embedded
        self._loaders = loaders
        self._snapshot: Dict[str, Any] = dict(embedded.queries)
        self._network: Dict[str, Any] = {}
        self._buffered: Dict[str, Any] = {}
        self._in_flight: Set[str] = set()
        self._state = HydrationState.HYDRATING

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> HydrationState:
        return self._state

    @property
    def route(self) -> RouteDescriptor:
        return self._embedded.route

    def _advance(self, state: HydrationState) -> None:
        if _STATE_ORDER[state] > _STATE_ORDER[self._state]:
            logger.debug("Hydration %s -> %s for %s", self._state.value, state.value, self.route.path)
            self._state = state

    def mark_mounted(self) -> None:
        """First render is attached; apply anything fetched during hydration."""
        self._advance(HydrationState.HYDRATED)
        if self._buffered:
            self._network.update(self._buffered)
            self._buffered.clear()
            self._advance(HydrationState.LIVE)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read(self, key: QueryKey) -> Any:
        """
        Current value for ``key``.

        Raises
        ------
        KeyError
            If the key is neither in the snapshot nor fetched yet.
        """
        key_hash = query_key_hash(key)
        if self._state is not HydrationState.HYDRATING and key_hash in self._network:
            return self._network[key_hash]
        if key_hash in self._snapshot:
            return self._snapshot[key_hash]
        return self._network[key_hash]

    def is_from_snapshot(self, key: QueryKey) -> bool:
        return self._state is not HydrationState.LIVE and query_key_hash(key) in self._snapshot

    def is_fetching(self, key: QueryKey) -> bool:
        return query_key_hash(key) in self._in_flight

    def should_fetch_on_mount(self, key: QueryKey) -> bool:
        """Snapshot data is fresh indefinitely, so only unknown keys fetch on mount."""
        key_hash = query_key_hash(key)
        return key_hash not in self._snapshot and key_hash not in self._network

    def snapshot_keys(self) -> List[QueryKey]:
        return [parse_query_key(key_hash) for key_hash in self._snapshot]

    # ------------------------------------------------------------------
    # Refetching
    # ------------------------------------------------------------------

    async def refetch(self, key: QueryKey) -> Any:
        """Fetch ``key`` from the network with the shared loaders."""
        key_hash = query_key_hash(key)
        self._in_flight.add(key_hash)
        try:
            value = await self._loaders.fetch(key)
        finally:
            self._in_flight.discard(key_hash)

        if self._state is HydrationState.HYDRATING:
            self._buffered[key_hash] = value
        else:
            self._network[key_hash] = value
            self._advance(HydrationState.LIVE)
        return value

    async def on_window_focus(self) -> List[Any]:
        """Refetch every snapshot query; ignored until the page is mounted."""
        if self._state is HydrationState.HYDRATING:
            return []
        return list(await asyncio.gather(*(self.refetch(key) for key in self.snapshot_keys())))

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, config: BuildConfiguration) -> str:
        """Render the page body from the current client state."""
        return render_markup(self.route, self.read, config)


def hydrate(embedded: EmbeddedState | str, loaders: DataLoaders) -> HydratedQueryClient:
    """Build the initial client state from an embedded block or a whole page."""
    if isinstance(embedded, str):
        embedded = extract_embedded(embedded)
    return HydratedQueryClient(embedded, loaders)
