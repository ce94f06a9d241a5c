"""Helpers shared by vector store adapters and their callers."""

from portfolio_core.vector_store.rrf import DEFAULT_K, SearchResult, fuse, fuse_many

__all__ = ["DEFAULT_K", "SearchResult", "fuse", "fuse_many"]
