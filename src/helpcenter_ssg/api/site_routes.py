"""
Static preview of a build.

Every GET goes through the URL canonicalizer first, so the preview answers
``/taxas`` the way production should: a permanent redirect to ``/taxas/``.
Everything else is served from the dist directory with the writer's path
mapping, falling back to the client shell for unknown routes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, RedirectResponse

from ..build.writer import output_relpath
from ..config import BuildConfiguration
from ..routing.canonical import RedirectTo, URLCanonicalizer
from ..routing.urls import relative_to_base
from .dependencies import get_canonicalizer, get_config, get_dist_dir

logger = logging.getLogger("ssg.preview")

router = APIRouter(tags=["site"])


def _inside(root: Path, candidate: Path) -> bool:
    try:
        candidate.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True


def resolve_file(dist_dir: Path, path: str, base_path: str) -> Optional[Path]:
    """
    File under ``dist_dir`` that answers ``path``, or None.

    Order: the literal file (assets, sitemap.xml), the prerendered page,
    then the client shell.
    """
    relative = relative_to_base(path, base_path)
    if relative is None:
        return None

    candidates = []
    literal = relative.lstrip("/")
    if literal:
        candidates.append(dist_dir / literal)
    try:
        candidates.append(dist_dir / output_relpath(path, base_path))
    except ValueError:
        return None
    candidates.append(dist_dir / "index.html")

    for candidate in candidates:
        if candidate.is_file() and _inside(dist_dir, candidate):
            return candidate
    return None


@router.get("/{full_path:path}")
def serve(
    full_path: str,
    request: Request,
    config: BuildConfiguration = Depends(get_config),
    dist_dir: Path = Depends(get_dist_dir),
    canonicalizer: URLCanonicalizer = Depends(get_canonicalizer),
):
    path = "/" + full_path

    decision = canonicalizer.canonicalize(path)
    if isinstance(decision, RedirectTo):
        target = decision.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        logger.debug("Redirecting %s -> %s", path, target)
        return RedirectResponse(target, status_code=308)

    found = resolve_file(dist_dir, path, config.base_path)
    if found is None:
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(found)
