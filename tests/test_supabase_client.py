"""
Supabase Content Client Tests

Tests for the PostgREST queries, row validation and the mapping of every
transport failure to SourceUnavailable.
"""

import httpx
import pytest
from pydantic import SecretStr

from helpcenter_ssg.config import Settings
from helpcenter_ssg.content import Article, Category
from helpcenter_ssg.content.supabase_client import ARTICLE_ORDER, SupabaseContentSource
from helpcenter_ssg.core.errors import SourceUnavailable

BASE_URL = "https://project.supabase.co"

ROWS = {
    "categories": [
        {"id": "cat-taxas", "name": "Taxas e Tarifas", "slug": "taxas", "position": 1, "color": "#fff"},
    ],
    "articles": [
        {
            "id": "art-1",
            "title": "Como consultar as taxas",
            "slug": "como-consultar-taxas",
            "category_id": "cat-taxas",
            "published_at": "2024-03-01T12:00:00+00:00",
            "views": 10,
        },
    ],
    "faqs": [
        {"id": "faq-1", "question": "Qual o prazo?", "answer": "1 dia", "position": 1},
    ],
}


class Recorder:
    """MockTransport handler that serves ROWS and records requests."""

    def __init__(self, rows=None, status_code=200):
        self.rows = ROWS if rows is None else rows
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        table = request.url.path.rsplit("/", 1)[-1]
        return httpx.Response(self.status_code, json=self.rows.get(table, []))


def make_source(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabaseContentSource(client, BASE_URL, "service-key", owns_client=True)


class TestQueries:
    """Tests for the REST requests issued per query."""

    async def test_list_content(self):
        recorder = Recorder()
        async with make_source(recorder) as source:
            items = await source.list_content(limit=3)

        assert [type(item) for item in items] == [Category, Article]
        categories_req, articles_req = recorder.requests
        assert categories_req.url.path == "/rest/v1/categories"
        assert categories_req.url.params["is_active"] == "eq.true"
        assert articles_req.url.path == "/rest/v1/articles"
        assert articles_req.url.params["status"] == "eq.published"
        assert articles_req.url.params["order"] == ARTICLE_ORDER
        assert articles_req.url.params["limit"] == "3"
        assert articles_req.url.params["select"] == "*"

    async def test_auth_headers(self):
        recorder = Recorder()
        async with make_source(recorder) as source:
            await source.list_categories()

        headers = recorder.requests[0].headers
        assert headers["apikey"] == "service-key"
        assert headers["authorization"] == "Bearer service-key"

    async def test_articles_by_category(self):
        recorder = Recorder()
        async with make_source(recorder) as source:
            articles = await source.list_articles_by_category("cat-taxas")

        assert articles[0].slug == "como-consultar-taxas"
        assert recorder.requests[0].url.params["category_id"] == "eq.cat-taxas"

    async def test_article_by_slug(self):
        recorder = Recorder()
        async with make_source(recorder) as source:
            article = await source.get_article_by_slug("como-consultar-taxas")

        assert article.id == "art-1"
        assert recorder.requests[0].url.params["slug"] == "eq.como-consultar-taxas"
        assert recorder.requests[0].url.params["limit"] == "1"

    async def test_article_by_slug_missing(self):
        async with make_source(Recorder(rows={"articles": []})) as source:
            assert await source.get_article_by_slug("nao-existe") is None

    async def test_faqs(self):
        async with make_source(Recorder()) as source:
            faqs = await source.list_faqs()

        assert faqs[0].question == "Qual o prazo?"

    async def test_get_content_by_id_falls_back_to_articles(self):
        recorder = Recorder(rows={"categories": [], "articles": ROWS["articles"]})
        async with make_source(recorder) as source:
            item = await source.get_content_by_id("art-1")

        assert isinstance(item, Article)
        assert [r.url.path for r in recorder.requests] == ["/rest/v1/categories", "/rest/v1/articles"]

    async def test_get_content_by_id_missing(self):
        async with make_source(Recorder(rows={})) as source:
            with pytest.raises(KeyError):
                await source.get_content_by_id("nada")


class TestFailures:
    """Tests that every failure surfaces as SourceUnavailable."""

    async def test_http_error_status(self):
        async with make_source(Recorder(status_code=503)) as source:
            with pytest.raises(SourceUnavailable, match="HTTPStatusError"):
                await source.list_categories()

    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_source(handler) as source:
            with pytest.raises(SourceUnavailable, match="ConnectError"):
                await source.list_content()

    async def test_invalid_json(self):
        def handler(request):
            return httpx.Response(200, text="<html>gateway</html>")

        async with make_source(handler) as source:
            with pytest.raises(SourceUnavailable, match="Invalid JSON"):
                await source.list_categories()

    async def test_non_list_payload(self):
        def handler(request):
            return httpx.Response(200, json={"message": "oops"})

        async with make_source(handler) as source:
            with pytest.raises(SourceUnavailable, match="Expected a list"):
                await source.list_faqs()

    async def test_malformed_row(self):
        async with make_source(Recorder(rows={"categories": [{"name": "sem id"}]})) as source:
            with pytest.raises(SourceUnavailable, match="Malformed categories row"):
                await source.list_categories()


class TestLifecycle:
    """Tests for client ownership and construction."""

    async def test_borrowed_client_is_not_closed(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(Recorder()))
        source = SupabaseContentSource(client, BASE_URL, "service-key")

        await source.aclose()

        assert not client.is_closed
        await client.aclose()

    async def test_owned_client_is_closed(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(Recorder()))
        async with SupabaseContentSource(client, BASE_URL, "service-key", owns_client=True):
            pass

        assert client.is_closed

    def test_empty_key_rejected(self):
        with pytest.raises(ValueError):
            SupabaseContentSource(httpx.AsyncClient(), BASE_URL, "")

    def test_from_settings_requires_key(self):
        settings = Settings(supabase_service_key=None)

        with pytest.raises(SourceUnavailable, match="SSG_SUPABASE_SERVICE_KEY"):
            SupabaseContentSource.from_settings(settings)

    async def test_from_settings(self):
        settings = Settings(supabase_url=BASE_URL + "/", supabase_service_key=SecretStr("k"))

        source = SupabaseContentSource.from_settings(settings)
        try:
            assert source._rest_url == BASE_URL + "/rest/v1"
        finally:
            await source.aclose()
