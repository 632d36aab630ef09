"""
Batch Render Scheduler Tests

Tests for batch partitioning, strict batch ordering, bounded concurrency,
per-route failure isolation and cooperative stopping.
"""

import asyncio

import pytest

from helpcenter_ssg.build import BatchRenderScheduler, RouteFailure, partition
from helpcenter_ssg.core.errors import RenderError, SourceUnavailable
from helpcenter_ssg.render.models import HeadMetadata, RenderSnapshot
from helpcenter_ssg.routing import RouteDescriptor, RouteKind


def make_routes(count):
    return [RouteDescriptor(path=f"/r{i}", kind=RouteKind.CATEGORY) for i in range(count)]


def make_snapshot(route):
    head = HeadMetadata(
        title="t",
        description="d",
        canonical_url=f"https://example.com{route.path}",
        og_image="https://example.com/og.png",
        og_title="t",
        og_description="d",
    )
    return RenderSnapshot(
        route=route,
        query_results={},
        rendered_markup=f"<main>{route.path}</main>",
        head_metadata=head,
        generated_at="2024-01-01T00:00:00+00:00",
    )


async def render_ok(route):
    await asyncio.sleep(0)
    return make_snapshot(route)


class TestPartition:
    """Tests for splitting routes into batches."""

    @pytest.mark.parametrize(
        "length, size, expected",
        [(0, 3, []), (1, 3, [1]), (3, 3, [3]), (7, 3, [3, 3, 1]), (23, 10, [10, 10, 3])],
    )
    def test_batch_sizes(self, length, size, expected):
        batches = list(partition(make_routes(length), size))
        assert [len(batch) for batch in batches] == expected

    def test_keeps_order(self):
        routes = make_routes(5)
        flattened = [route for batch in partition(routes, 2) for route in batch]
        assert flattened == routes

    def test_rejects_zero_batch_size(self):
        with pytest.raises(ValueError):
            list(partition(make_routes(1), 0))


class TestBatchRenderScheduler:
    """Tests for BatchRenderScheduler.run."""

    async def test_all_routes_succeed(self):
        scheduler = BatchRenderScheduler(batch_size=3)
        routes = make_routes(7)

        report = await scheduler.run(routes, render_ok)

        assert report.succeeded == 7
        assert report.failed == []
        assert report.batches == 3
        assert report.rendered_paths == [route.path for route in routes]
        assert not report.is_fatal
        assert not report.cancelled

    async def test_batches_run_strictly_in_order(self):
        """Verify no route of batch k+1 starts before batch k has finished."""
        scheduler = BatchRenderScheduler(batch_size=3)
        routes = make_routes(8)
        events = []

        async def render_one(route):
            events.append(("start", route.path))
            await asyncio.sleep(0.001 * (3 - int(route.path[2:]) % 3))
            events.append(("end", route.path))
            return make_snapshot(route)

        await scheduler.run(routes, render_one)

        batch_of = {route.path: index // 3 for index, route in enumerate(routes)}
        finished = set()
        for kind, path in events:
            if kind == "start":
                earlier = [p for p, b in batch_of.items() if b < batch_of[path]]
                assert all(p in finished for p in earlier)
            else:
                finished.add(path)

    async def test_concurrency_is_bounded(self):
        scheduler = BatchRenderScheduler(batch_size=5, max_concurrency=2)
        in_flight = 0
        peak = 0

        async def render_one(route):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.001)
            in_flight -= 1
            return make_snapshot(route)

        report = await scheduler.run(make_routes(10), render_one)

        assert report.succeeded == 10
        assert peak <= 2

    async def test_one_failure_in_five(self):
        """Verify a single failing route does not affect its siblings."""
        scheduler = BatchRenderScheduler(batch_size=5)
        routes = make_routes(5)

        async def render_one(route):
            if route.path == "/r2":
                raise RuntimeError("boom")
            return make_snapshot(route)

        report = await scheduler.run(routes, render_one)

        assert report.succeeded == 4
        assert report.failed == [RouteFailure(path="/r2", reason="RuntimeError: boom")]
        assert report.batches == 1
        assert not report.is_fatal

    async def test_render_error_reason_is_kept(self):
        scheduler = BatchRenderScheduler(batch_size=2)

        async def render_one(route):
            raise RenderError(route.path, LookupError("Unknown category 'r0'"))

        report = await scheduler.run(make_routes(1), render_one)

        assert report.failed[0].reason == "LookupError: Unknown category 'r0'"

    async def test_failures_keep_route_order(self):
        scheduler = BatchRenderScheduler(batch_size=4)

        async def render_one(route):
            index = int(route.path[2:])
            # Later routes fail first
            await asyncio.sleep(0.001 * (10 - index))
            if index % 2:
                raise ValueError(route.path)
            return make_snapshot(route)

        report = await scheduler.run(make_routes(8), render_one)

        assert [failure.path for failure in report.failed] == ["/r1", "/r3", "/r5", "/r7"]

    async def test_on_success_failure_fails_the_route(self):
        scheduler = BatchRenderScheduler(batch_size=3)
        written = []

        async def on_success(snapshot):
            if snapshot.route.path == "/r1":
                raise OSError("disk full")
            written.append(snapshot.route.path)

        report = await scheduler.run(make_routes(3), render_ok, on_success=on_success)

        assert written == ["/r0", "/r2"]
        assert report.succeeded == 2
        assert report.failed == [RouteFailure(path="/r1", reason="OSError: disk full")]

    async def test_all_failed_is_fatal(self):
        scheduler = BatchRenderScheduler(batch_size=2)

        async def render_one(route):
            raise RuntimeError("down")

        report = await scheduler.run(make_routes(3), render_one)

        assert report.succeeded == 0
        assert len(report.failed) == 3
        assert report.is_fatal

    async def test_empty_route_list(self):
        report = await BatchRenderScheduler(batch_size=2).run([], render_ok)

        assert report.batches == 0
        assert report.succeeded == 0

    async def test_stop_finishes_current_batch(self):
        """Verify request_stop lets the in-flight batch complete and skips the rest."""
        scheduler = BatchRenderScheduler(batch_size=2)

        async def render_one(route):
            if route.path == "/r0":
                scheduler.request_stop()
            await asyncio.sleep(0)
            return make_snapshot(route)

        report = await scheduler.run(make_routes(6), render_one)

        assert report.cancelled
        assert report.batches == 1
        assert report.rendered_paths == ["/r0", "/r1"]

    async def test_source_loss_stops_after_current_batch(self):
        """Verify SourceUnavailable fails its route, lets the batch finish and skips the rest."""
        scheduler = BatchRenderScheduler(batch_size=2)
        seen = []

        async def render_one(route):
            seen.append(route.path)
            await asyncio.sleep(0)
            if route.path == "/r0":
                raise SourceUnavailable("connection reset")
            return make_snapshot(route)

        report = await scheduler.run(make_routes(6), render_one)

        assert seen == ["/r0", "/r1"]
        assert report.batches == 1
        assert report.rendered_paths == ["/r1"]
        assert report.failed == [RouteFailure(path="/r0", reason="SourceUnavailable: connection reset")]
        assert report.source_error == "connection reset"
        assert not report.cancelled

    async def test_source_error_does_not_leak_into_next_run(self):
        scheduler = BatchRenderScheduler(batch_size=2)

        async def render_one(route):
            raise SourceUnavailable("down")

        await scheduler.run(make_routes(2), render_one)
        report = await scheduler.run(make_routes(4), render_ok)

        assert report.source_error is None
        assert report.succeeded == 4


    def test_rejects_zero_batch_size(self):
        with pytest.raises(ValueError):
            BatchRenderScheduler(batch_size=0)
