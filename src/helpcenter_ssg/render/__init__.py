"""Server-side rendering of routes into snapshots and HTML documents."""

from .document import ClientAssets, extract_client_assets, extract_root_markup, render_document
from .head import build_head, validate_head
from .markup import render_markup
from .models import HeadMetadata, RenderSnapshot
from .renderer import ServerRenderer

__all__ = [
    "ClientAssets",
    "HeadMetadata",
    "RenderSnapshot",
    "ServerRenderer",
    "build_head",
    "extract_client_assets",
    "extract_root_markup",
    "render_document",
    "render_markup",
    "validate_head",
]
