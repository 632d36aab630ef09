"""
Hydration Data Bridge (build side)

Serializes a snapshot's query results and head metadata into a
script-embeddable JSON block, and parses that block back out of a page.

The block is ``<script id="__SSG_STATE__" type="application/json">``; the
JSON text escapes ``<``, ``>``, ``&`` and the U+2028/U+2029 line separators
so authored content can never close the script element early.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..render.models import HeadMetadata, RenderSnapshot
from ..routing.models import RouteDescriptor

STATE_SCRIPT_ID = "__SSG_STATE__"

_STATE_RE = re.compile(
    r'<script id="' + STATE_SCRIPT_ID + r'" type="application/json">(.*?)</script>',
    re.DOTALL,
)

_SCRIPT_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


@dataclass(frozen=True)
class EmbeddedState:
    """The state block of a prerendered page, as read by the client."""

    route: RouteDescriptor
    queries: Dict[str, Any]
    head: HeadMetadata
    generated_at: Optional[str] = None


def serialize_state(snapshot: RenderSnapshot) -> str:
    """JSON text of the snapshot state, safe to place inside a script element."""
    payload = {
        "route": snapshot.route.model_dump(mode="json"),
        "queries": snapshot.query_results,
        "head": snapshot.head_metadata.model_dump(mode="json"),
        "generatedAt": snapshot.generated_at,
    }
    text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"), sort_keys=True)
    for char, escaped in _SCRIPT_ESCAPES.items():
        text = text.replace(char, escaped)
    return text


def state_script(snapshot: RenderSnapshot) -> str:
    return f'<script id="{STATE_SCRIPT_ID}" type="application/json">{serialize_state(snapshot)}</script>'


def embed(snapshot: RenderSnapshot, document: str) -> str:
    """
    Attach the snapshot state to an HTML document.

    The block goes right before ``</body>`` so it is parsed before the
    client bundle's deferred module scripts run.
    """
    script = state_script(snapshot)
    index = document.rfind("</body>")
    if index < 0:
        return document + script
    return f"{document[:index]}  {script}\n{document[index:]}"


def extract_embedded(page_html: str) -> EmbeddedState:
    """
    Parse the state block out of a prerendered page.

    Raises
    ------
    ValueError
        If the page carries no state block or it is not valid JSON.
    """
    match = _STATE_RE.search(page_html)
    if match is None:
        raise ValueError("Page has no embedded state block")
    data = json.loads(match.group(1))
    return EmbeddedState(
        route=RouteDescriptor(**data["route"]),
        queries=data["queries"],
        head=HeadMetadata(**data["head"]),
        generated_at=data.get("generatedAt"),
    )
