"""
Output file layout.

Route paths map onto files under the dist directory, which is served at
``base_path``:

    {base}            -> index.html
    {base}x/          -> x/index.html
    {base}x/y         -> x/y.html
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from ..routing.urls import relative_to_base

PathLike = Union[str, Path]


def output_relpath(route_path: str, base_path: str = "/") -> str:
    """
    Relative file path (POSIX) for a route path.

    Raises
    ------
    ValueError
        If the path lies outside ``base_path`` or escapes the dist directory.
    """
    relative = relative_to_base(route_path, base_path)
    if relative is None:
        raise ValueError(f"Route {route_path!r} is outside base path {base_path!r}")

    segments = [segment for segment in relative.split("/") if segment]
    if any(segment in (".", "..") for segment in segments):
        raise ValueError(f"Route {route_path!r} escapes the output directory")

    if not segments:
        return "index.html"
    if relative.endswith("/"):
        return "/".join(segments + ["index.html"])
    return "/".join(segments) + ".html"


def resolve_output(dist_dir: PathLike, route_path: str, base_path: str = "/") -> Path:
    return Path(dist_dir) / output_relpath(route_path, base_path)


def write_page(dist_dir: PathLike, route_path: str, html: str, base_path: str = "/") -> Path:
    """Write ``html`` for ``route_path``, creating parent directories."""
    out = resolve_output(dist_dir, route_path, base_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(html, encoding="utf-8")
    return out


def write_text_file(dist_dir: PathLike, name: str, content: str) -> Path:
    out = Path(dist_dir) / name
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(content, encoding="utf-8")
    return out


def list_html_files(dist_dir: PathLike, limit: Optional[int] = None) -> List[str]:
    """Sorted POSIX paths of every ``.html`` file under ``dist_dir``."""
    root = Path(dist_dir)
    files = sorted(path.relative_to(root).as_posix() for path in root.rglob("*.html"))
    return files if limit is None else files[:limit]
