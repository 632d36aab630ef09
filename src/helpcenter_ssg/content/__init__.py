"""Content models, sources and the shared data loaders."""

from .loaders import DataLoaders, QueryKey, query_key_hash
from .models import Article, Category, ContentItem, Faq, sort_articles
from .source import ContentSource, InMemoryContentSource

__all__ = [
    "Article",
    "Category",
    "ContentItem",
    "ContentSource",
    "DataLoaders",
    "Faq",
    "InMemoryContentSource",
    "QueryKey",
    "query_key_hash",
    "sort_articles",
]
