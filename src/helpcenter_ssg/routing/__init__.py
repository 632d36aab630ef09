"""Route descriptors, enumeration and URL canonicalization."""

from .canonical import (
    CanonicalizationDecision,
    ClientRouter,
    History,
    NoAction,
    RedirectTo,
    SlugIndex,
    URLCanonicalizer,
)
from .enumerator import enumerate_paths, enumerate_routes
from .models import RouteDescriptor, RouteKind

__all__ = [
    "CanonicalizationDecision",
    "ClientRouter",
    "History",
    "NoAction",
    "RedirectTo",
    "RouteDescriptor",
    "RouteKind",
    "SlugIndex",
    "URLCanonicalizer",
    "enumerate_paths",
    "enumerate_routes",
]
