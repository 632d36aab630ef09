"""Embedding render snapshots into pages and replaying them on the client."""

from .bridge import EmbeddedState, embed, extract_embedded, serialize_state
from .client import HydratedQueryClient, HydrationState, hydrate

__all__ = [
    "EmbeddedState",
    "HydratedQueryClient",
    "HydrationState",
    "embed",
    "extract_embedded",
    "hydrate",
    "serialize_state",
]
