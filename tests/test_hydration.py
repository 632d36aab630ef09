"""
Hydration Data Bridge Tests

Tests for embedding snapshots into pages, extracting them back, replaying
them on the client and the one-way HYDRATING -> HYDRATED -> LIVE state
machine.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from helpcenter_ssg.content import DataLoaders, InMemoryContentSource
from helpcenter_ssg.hydration import HydrationState, embed, extract_embedded, hydrate, serialize_state
from helpcenter_ssg.render import ServerRenderer, extract_root_markup, render_document
from helpcenter_ssg.routing import RouteDescriptor, RouteKind, enumerate_routes

CATEGORIES = ("categories",)
FAQS = ("faqs",)


async def render_page(config, loaders, route):
    snapshot = await ServerRenderer(config).render_route(route, loaders)
    return snapshot, embed(snapshot, render_document(snapshot, config))


@pytest.fixture
def home_route():
    return RouteDescriptor(path="/", kind=RouteKind.SYSTEM)


class TestRoundTrip:
    """Tests that replaying the embedded state reproduces the served markup."""

    async def test_every_route_round_trips(self, source, loaders, config):
        routes = await enumerate_routes(source, config)
        assert routes

        for route in routes:
            snapshot, page = await render_page(config, loaders, route)

            served = extract_root_markup(page)
            client = hydrate(page, loaders)

            assert served == snapshot.rendered_markup
            assert client.render(config) == served
            assert client.state is HydrationState.HYDRATING

    async def test_round_trip_under_base_path(self, source, loaders, ajuda_config):
        for route in await enumerate_routes(source, ajuda_config):
            snapshot, page = await render_page(ajuda_config, loaders, route)
            assert hydrate(page, loaders).render(ajuda_config) == snapshot.rendered_markup

    async def test_hostile_content_round_trips(self, content_data, config):
        """Verify script-closing text and line separators survive embedding."""
        hostile = "<p>fim</p></script><script>alert(1)</script> \u2028 & <!-- x -->"
        content_data["articles"][0]["content"] = hostile
        loaders = DataLoaders.for_source(InMemoryContentSource.from_dict(content_data))
        route = RouteDescriptor(path="/taxas/como-consultar-taxas", kind=RouteKind.CONTENT)

        snapshot, page = await render_page(config, loaders, route)
        embedded = extract_embedded(page)

        assert embedded.queries == snapshot.query_results
        assert hydrate(embedded, loaders).render(config) == snapshot.rendered_markup

    async def test_embedded_state_carries_route_and_head(self, loaders, config, home_route):
        snapshot, page = await render_page(config, loaders, home_route)

        embedded = extract_embedded(page)

        assert embedded.route == home_route
        assert embedded.head == snapshot.head_metadata
        assert embedded.generated_at == snapshot.generated_at


class TestSerialization:
    """Tests for the script-safe state block."""

    async def test_serialized_state_is_script_safe(self, content_data, config):
        content_data["faqs"][0]["answer"] = "</script><b>&</b>\u2029"
        loaders = DataLoaders.for_source(InMemoryContentSource.from_dict(content_data))
        snapshot = await ServerRenderer(config).render_route(
            RouteDescriptor(path="/", kind=RouteKind.SYSTEM), loaders
        )

        text = serialize_state(snapshot)

        for forbidden in ("<", ">", "&", "\u2028", "\u2029"):
            assert forbidden not in text
        assert json.loads(text)["route"]["path"] == "/"

    async def test_state_block_precedes_body_close(self, loaders, config, home_route):
        _, page = await render_page(config, loaders, home_route)

        assert page.index('id="__SSG_STATE__"') < page.index("</body>")
        assert page.count('id="__SSG_STATE__"') == 1

    def test_missing_state_block(self):
        with pytest.raises(ValueError):
            extract_embedded("<html><body><div id=\"root\"></div></body></html>")


class TestHydrationStateMachine:
    """Tests for HydratedQueryClient state transitions."""

    @pytest.fixture
    async def client(self, loaders, config, home_route):
        _, page = await render_page(config, loaders, home_route)
        return hydrate(page, loaders)

    @pytest.fixture
    def fresh_categories(self):
        return AsyncMock(return_value=[{"id": "novo", "name": "Nova", "slug": "nova"}])

    @pytest.fixture
    def fresh_loaders(self, fresh_categories):
        return DataLoaders({"categories": fresh_categories, "faqs": AsyncMock(return_value=[])})

    async def test_snapshot_keys_do_not_fetch_on_mount(self, client):
        assert client.should_fetch_on_mount(CATEGORIES) is False
        assert client.should_fetch_on_mount(FAQS) is False
        assert client.should_fetch_on_mount(("article", "x")) is True
        assert sorted(client.snapshot_keys()) == [CATEGORIES, FAQS]

    async def test_mount_moves_to_hydrated(self, client):
        client.mark_mounted()

        assert client.state is HydrationState.HYDRATED
        assert client.is_from_snapshot(CATEGORIES)

    async def test_refetch_while_hydrating_is_buffered(self, loaders, config, home_route, fresh_loaders):
        """Verify a network result never replaces snapshot data mid-hydration."""
        _, page = await render_page(config, loaders, home_route)
        client = hydrate(page, fresh_loaders)
        snapshot_value = client.read(CATEGORIES)

        await client.refetch(CATEGORIES)

        assert client.state is HydrationState.HYDRATING
        assert client.read(CATEGORIES) == snapshot_value

        client.mark_mounted()

        assert client.state is HydrationState.LIVE
        assert client.read(CATEGORIES)[0]["slug"] == "nova"
        assert not client.is_from_snapshot(CATEGORIES)

    async def test_in_flight_fetch_keeps_snapshot(self, loaders, config, home_route):
        release = asyncio.Event()

        async def slow_categories():
            await release.wait()
            return []

        _, page = await render_page(config, loaders, home_route)
        client = hydrate(page, DataLoaders({"categories": slow_categories}))
        snapshot_value = client.read(CATEGORIES)

        task = asyncio.create_task(client.refetch(CATEGORIES))
        await asyncio.sleep(0)

        assert client.is_fetching(CATEGORIES)
        assert client.read(CATEGORIES) == snapshot_value

        release.set()
        await task

        assert not client.is_fetching(CATEGORIES)

    async def test_window_focus_ignored_while_hydrating(
        self, loaders, config, home_route, fresh_loaders, fresh_categories
    ):
        _, page = await render_page(config, loaders, home_route)
        client = hydrate(page, fresh_loaders)

        assert await client.on_window_focus() == []
        fresh_categories.assert_not_awaited()

    async def test_window_focus_after_mount_goes_live(self, loaders, config, home_route, fresh_loaders):
        _, page = await render_page(config, loaders, home_route)
        client = hydrate(page, fresh_loaders)
        client.mark_mounted()

        results = await client.on_window_focus()

        assert len(results) == 2
        assert client.state is HydrationState.LIVE
        assert client.read(CATEGORIES)[0]["slug"] == "nova"

    async def test_states_never_revert(self, client):
        client.mark_mounted()
        await client.refetch(CATEGORIES)
        assert client.state is HydrationState.LIVE

        client.mark_mounted()

        assert client.state is HydrationState.LIVE

    async def test_unknown_key_raises(self, client):
        with pytest.raises(KeyError):
            client.read(("article", "desconhecido"))
