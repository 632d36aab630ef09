"""
Batch Render Scheduler

Renders routes in fixed-size batches to bound peak memory and CPU.

Design choices
--------------
- Batches run strictly one after another; a batch boundary is a
  synchronization point with no state carried over.
- Inside a batch, routes render concurrently through ``asyncio.gather``,
  never more than ``batch_size`` at once.
- A failing route becomes ``Failure(reason)``; it never aborts its batch.
- The ``BuildReport`` is only appended to between batches, so it needs no
  lock.
- ``request_stop()`` lets the in-flight batch finish and skips the rest,
  so no file is ever left half-written.
- A route that lost the content source (``SourceUnavailable``) fails like
  any other, but stops the run after its batch the same way.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterator, List, Optional, Sequence, Union

from ..core.errors import RenderError, SourceUnavailable
from ..render.models import RenderSnapshot
from ..routing.models import RouteDescriptor

logger = logging.getLogger("ssg.scheduler")

DEFAULT_BATCH_SIZE = 10

RenderOne = Callable[[RouteDescriptor], Awaitable[RenderSnapshot]]
OnSuccess = Callable[[RenderSnapshot], Awaitable[None]]


# ---------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class Success:
    snapshot: RenderSnapshot


@dataclass(frozen=True)
class Failure:
    reason: str


RouteResult = Union[Success, Failure]


@dataclass(frozen=True)
class RouteFailure:
    path: str
    reason: str


@dataclass
class BatchJob:
    """One batch of routes and the outcome of each, keyed by path."""

    batch_index: int
    routes: Sequence[RouteDescriptor]
    results: Dict[str, RouteResult] = field(default_factory=dict)


@dataclass
class BuildReport:
    """Outcome of a whole scheduler run."""

    succeeded: int = 0
    failed: List[RouteFailure] = field(default_factory=list)
    rendered_paths: List[str] = field(default_factory=list)
    batches: int = 0
    cancelled: bool = False
    source_error: Optional[str] = None

    @property
    def is_fatal(self) -> bool:
        return self.succeeded == 0

    def fold(self, job: BatchJob) -> None:
        """Add a finished batch, keeping the batch's route order."""
        for route in job.routes:
            result = job.results[route.path]
            if isinstance(result, Success):
                self.succeeded += 1
                self.rendered_paths.append(route.path)
            else:
                self.failed.append(RouteFailure(path=route.path, reason=result.reason))
        self.batches += 1


def partition(routes: Sequence[RouteDescriptor], batch_size: int) -> Iterator[List[RouteDescriptor]]:
    """Yield consecutive batches of at most ``batch_size`` routes."""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    for start in range(0, len(routes), batch_size):
        yield list(routes[start : start + batch_size])


def _failure_reason(exc: BaseException) -> str:
    if isinstance(exc, RenderError):
        return exc.reason
    return f"{type(exc).__name__}: {exc}"


# ---------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------

class BatchRenderScheduler:
    """Sequential batches, bounded concurrency inside each batch."""

    def __init__(self, batch_size: int = DEFAULT_BATCH_SIZE, max_concurrency: Optional[int] = None) -> None:
        """
        Parameters
        ----------
        batch_size : int
            Maximum routes per batch.

        max_concurrency : Optional[int]
            Concurrent renders inside a batch; capped at ``batch_size``.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size
        self.max_concurrency = min(max_concurrency or batch_size, batch_size)
        self._stop_requested = False
        self._source_error: Optional[str] = None

    def request_stop(self) -> None:
        """Finish the current batch, then stop."""
        if not self._stop_requested:
            logger.warning("Stop requested; finishing the current batch")
        self._stop_requested = True

    async def run(
        self,
        routes: Sequence[RouteDescriptor],
        render_one: RenderOne,
        on_success: Optional[OnSuccess] = None,
    ) -> BuildReport:
        """
        Render every route and return the folded report.

        Parameters
        ----------
        routes : Sequence[RouteDescriptor]
            Routes in enumeration order.

        render_one : RenderOne
            Renders one route to a snapshot.

        on_success : Optional[OnSuccess]
            Called with each snapshot inside the route's task (the build
            writes the page here). A failure here fails the route.
        """
        report = BuildReport()
        self._source_error = None
        total = math.ceil(len(routes) / self.batch_size) if routes else 0
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run_route(route: RouteDescriptor) -> RouteResult:
            async with semaphore:
                try:
                    snapshot = await render_one(route)
                    if on_success is not None:
                        await on_success(snapshot)
                except SourceUnavailable as exc:
                    logger.error("Content source lost while rendering %s: %s", route.path, exc)
                    self._source_error = str(exc)
                    return Failure(_failure_reason(exc))
                except Exception as exc:
                    logger.warning("Failed to render %s: %s", route.path, _failure_reason(exc))
                    return Failure(_failure_reason(exc))
                return Success(snapshot)

        for index, batch in enumerate(partition(routes, self.batch_size)):
            if self._source_error is not None:
                logger.error("Skipping %d remaining batches after a source failure", total - index)
                break
            if self._stop_requested:
                report.cancelled = True
                logger.warning("Skipping %d remaining batches", total - index)
                break

            job = BatchJob(batch_index=index, routes=batch)
            outcomes = await asyncio.gather(*(run_route(route) for route in batch))
            for route, outcome in zip(batch, outcomes):
                job.results[route.path] = outcome
            report.fold(job)

            logger.info(
                "Completed batch %d/%d (%d routes, %d failed so far)",
                index + 1,
                total,
                len(batch),
                len(report.failed),
            )

        report.source_error = self._source_error
        return report
