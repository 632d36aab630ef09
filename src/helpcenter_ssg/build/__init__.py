"""Batch scheduling, output writing and the build driver."""

from .driver import BuildDriver
from .scheduler import (
    BatchJob,
    BatchRenderScheduler,
    BuildReport,
    Failure,
    RouteFailure,
    Success,
    partition,
)

__all__ = [
    "BatchJob",
    "BatchRenderScheduler",
    "BuildDriver",
    "BuildReport",
    "Failure",
    "RouteFailure",
    "Success",
    "partition",
]
