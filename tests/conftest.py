"""
Shared fixtures: a small help-center content set, the matching in-memory
source and loaders, and build configurations.
"""

import copy
from typing import Any, Dict

import pytest

from helpcenter_ssg.config import BuildConfiguration, get_settings
from helpcenter_ssg.content import DataLoaders, InMemoryContentSource

SITE_URL = "https://ajuda.modopag.com.br"

CONTENT: Dict[str, Any] = {
    "categories": [
        {
            "id": "cat-taxas",
            "name": "Taxas e Tarifas",
            "slug": "taxas",
            "description": "Tudo sobre as taxas cobradas nas vendas com a maquininha modoPAG.",
            "position": 1,
        },
        {
            "id": "cat-conta",
            "name": "Conta Digital",
            "slug": "conta",
            "description": "Abertura, saques e transferências da sua conta digital.",
            "position": 2,
        },
        {
            "id": "cat-antiga",
            "name": "Categoria Antiga",
            "slug": "antiga",
            "position": 3,
            "is_active": False,
        },
    ],
    "articles": [
        {
            "id": "art-1",
            "title": "Como consultar as taxas",
            "slug": "como-consultar-taxas",
            "category_id": "cat-taxas",
            "content": "<p>Acesse o app e toque em <strong>Taxas</strong>.</p>",
            "first_paragraph": "Veja passo a passo como consultar as taxas aplicadas às suas vendas.",
            "meta_title": "Consultar taxas",
            "author": "Equipe modoPAG",
            "published_at": "2024-03-01T12:00:00+00:00",
            "reading_time_minutes": 3,
        },
        {
            "id": "art-2",
            "title": "Taxa de saque",
            "slug": "taxa-de-saque",
            "category_id": "cat-taxas",
            "content": "<p>O saque é gratuito.</p>",
            "meta_description": "Entenda quando a taxa de saque é cobrada e como evitar custos extras.",
            "og_image": "https://cdn.modopag.com.br/saque.png",
            "published_at": "2024-02-01T12:00:00+00:00",
        },
        {
            "id": "art-3",
            "title": "Como abrir sua conta",
            "slug": "abrir-conta",
            "category_id": "cat-conta",
            "content": "<p>Baixe o app.</p>",
            "canonical_url": "https://modopag.com.br/abrir-conta",
            "noindex": True,
            "published_at": "2024-01-15T12:00:00+00:00",
        },
        {
            "id": "art-4",
            "title": "Rascunho",
            "slug": "rascunho",
            "category_id": "cat-conta",
            "status": "draft",
            "published_at": "2024-04-01T12:00:00+00:00",
        },
    ],
    "faqs": [
        {"id": "faq-1", "question": "Qual o prazo de recebimento?", "answer": "Em 1 dia útil.", "position": 1},
        {"id": "faq-2", "question": "Como falar com o suporte?", "answer": "Pelo chat do app.", "position": 2},
    ],
}

SHELL_HTML = """<!DOCTYPE html>
<html lang="pt-BR">
  <head>
    <meta charset="UTF-8" />
    <title>modoPAG</title>
    <script type="module" crossorigin src="/assets/index-abc123.js"></script>
    <link rel="modulepreload" crossorigin href="/assets/vendor-def456.js">
    <link rel="stylesheet" crossorigin href="/assets/index-789xyz.css">
  </head>
  <body>
    <div id="root"></div>
  </body>
</html>
"""


@pytest.fixture
def content_data():
    return copy.deepcopy(CONTENT)


@pytest.fixture
def source(content_data):
    return InMemoryContentSource.from_dict(content_data)


@pytest.fixture
def loaders(source):
    return DataLoaders.for_source(source)


@pytest.fixture
def config():
    return BuildConfiguration(site_url=SITE_URL, batch_size=2)


@pytest.fixture
def ajuda_config():
    return BuildConfiguration(
        site_url=SITE_URL,
        base_path="/ajuda/",
        excluded_routes=["/admin"],
        batch_size=2,
    )


@pytest.fixture
def shell_html():
    return SHELL_HTML


@pytest.fixture
def dist_dir(tmp_path):
    """Dist directory holding a client shell like the one the client build emits."""
    dist = tmp_path / "dist"
    dist.mkdir()
    (dist / "index.html").write_text(SHELL_HTML, encoding="utf-8")
    return dist


@pytest.fixture
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
