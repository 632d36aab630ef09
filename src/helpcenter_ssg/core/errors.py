"""
Error Taxonomy and Handlers

This module defines the exceptions raised across the prerender pipeline and
the catch-all exception handler used by the preview server.

Propagation policy
------------------
- ``SourceUnavailable``, ``ClientBuildFailed`` and ``SanityCheckFailed`` are
  fatal for the whole build.
- ``RenderError`` is per-route: the scheduler records it and carries on.
- ``RedirectLoop`` never escapes the canonicalizer; it is logged and the
  navigation is left alone.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Sequence

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("ssg.errors")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class SSGError(RuntimeError):
    """Base exception for prerender pipeline failures."""


class SourceUnavailable(SSGError):
    """Raised when the content source cannot be reached or answers garbage."""


class ClientBuildFailed(SSGError):
    """Raised when the client bundle command exits with a non-zero status."""

    def __init__(self, command: str, returncode: int) -> None:
        self.command = command
        self.returncode = returncode
        super().__init__(f"Client build '{command}' failed with exit code {returncode}")


class QueryNotFound(SSGError):
    """Raised when no data loader is registered for a query key."""

    def __init__(self, key: Sequence[Any]) -> None:
        self.key = tuple(key)
        super().__init__(f"No data loader registered for query {self.key!r}")


class RenderError(SSGError):
    """A single route failed to render."""

    def __init__(self, path: str, cause: BaseException | str) -> None:
        self.path = path
        self.cause = cause
        if isinstance(cause, BaseException):
            reason = f"{type(cause).__name__}: {cause}"
        else:
            reason = cause
        self.reason = reason
        super().__init__(f"Failed to render {path}: {reason}")


class SanityCheckFailed(SSGError):
    """The emitted output is missing, empty or implausibly small."""

    def __init__(self, problems: Sequence[str]) -> None:
        self.problems = list(problems)
        super().__init__("Sanity check failed: " + "; ".join(self.problems))


class RedirectLoop(SSGError):
    """A canonical redirect target would itself be redirected."""

    def __init__(self, path: str, target: str) -> None:
        self.path = path
        self.target = target
        super().__init__(f"Redirect loop detected: {path} -> {target}")


# ---------------------------------------------------------------------
# Preview server handler
# ---------------------------------------------------------------------

async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions in the preview server.

    Logs the full stack trace and returns a generic 500 payload with no
    internal details.
    """
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )
