"""
Post-build sanity check of the output directory.

The entry page must be present, plausibly sized, branded and carry the head
tags search engines read. Category pages and SEO files the build promised
must exist.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Tuple, Union

from ..core.errors import SanityCheckFailed

logger = logging.getLogger("ssg.sanity")

# (needle, what it proves) looked up verbatim in index.html
HEAD_CHECKS: Tuple[Tuple[str, str], ...] = (
    ("<title>", "title tag"),
    ('name="description"', "meta description"),
    ('rel="canonical"', "canonical link"),
    ('"@context":"https://schema.org"', "JSON-LD structured data"),
)


def check_output(
    dist_dir: Union[str, Path],
    marker: str,
    min_bytes: int,
    expected_files: Iterable[str] = (),
) -> Path:
    """
    Verify the build output.

    ``index.html`` must exist, contain ``marker`` and every ``HEAD_CHECKS``
    needle, and be at least ``min_bytes`` long. Every path in
    ``expected_files`` (relative to ``dist_dir``) must be a file.

    Raises
    ------
    SanityCheckFailed
        With every problem found.
    """
    root = Path(dist_dir)
    index = root / "index.html"
    problems: List[str] = []

    if not index.is_file():
        raise SanityCheckFailed([f"{index} does not exist"])

    content = index.read_text(encoding="utf-8")
    size = len(content.encode("utf-8"))
    if size == 0:
        problems.append(f"{index} is empty")
    else:
        if size < min_bytes:
            problems.append(f"{index} is {size} bytes, expected at least {min_bytes}")
        if marker and marker not in content:
            problems.append(f"{index} does not contain {marker!r}")
        for needle, label in HEAD_CHECKS:
            if needle not in content:
                problems.append(f"{index} has no {label} ({needle})")

    for relpath in expected_files:
        if not (root / relpath).is_file():
            problems.append(f"{root / relpath} does not exist")

    if problems:
        raise SanityCheckFailed(problems)

    logger.info("Sanity check passed for %s (%d bytes)", index, size)
    return index
