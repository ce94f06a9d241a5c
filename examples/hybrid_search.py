#!/usr/bin/env python3
"""Hybrid search - wire two retrieval adapters from a manifest and fuse them.

Loads ``examples/manifest.yaml``, registers the in-memory adapters below,
queries every port that declares a search capability and merges the ranked
lists with reciprocal rank fusion.

Run:
    python examples/hybrid_search.py
"""

from pathlib import Path

from portfolio_core.application import bootstrap
from portfolio_core.core.config import PortfolioSettings
from portfolio_core.manifest.resolver import AdapterResolver
from portfolio_core.vector_store import SearchResult, fuse_many

resolver = AdapterResolver()

SEARCH_CAPABILITIES = ("vector_search", "keyword_search")

DOCS = {
    "doc-1": "reciprocal rank fusion merges rankings",
    "doc-2": "vector stores rank by similarity",
    "doc-3": "keyword search ranks by term overlap",
}


@resolver.register("memory_vectors")
class MemoryVectors:
    @staticmethod
    def search(query: str) -> list[SearchResult]:
        return [SearchResult("doc-2", 0.91), SearchResult("doc-1", 0.84)]


@resolver.register("memory_keywords")
class MemoryKeywords:
    @staticmethod
    def search(query: str) -> list[SearchResult]:
        hits = [doc_id for doc_id, text in DOCS.items() if "rank" in text]
        return [SearchResult(doc_id, 1.0, payload=DOCS[doc_id]) for doc_id in hits]


def main() -> None:
    settings = PortfolioSettings(
        manifest_path=str(Path(__file__).with_name("manifest.yaml")),
        log_format="console",
    )
    with bootstrap(settings, resolver=resolver) as container:
        engine = container.engine
        registry = container.registry
        print(f"Wired ports: {sorted(registry.list_ports())}")

        rankings = []
        for capability in SEARCH_CAPABILITIES:
            for port_name, _, _ in registry.find_by_capability(capability):
                with registry.track_call(port_name) as adapter:
                    rankings.append(adapter.search("rank fusion"))

        for result in fuse_many(rankings):
            print(f"{result.id}: {result.score:.5f} {result.payload or ''}")

        print(f"vector_store metrics: {registry.metrics('vector_store').unwrap().to_dict()}")
        print(f"capabilities: {registry.capabilities('vector_store').unwrap().supports_streaming}")
        print(f"router: {engine.get_manifest().router}")


if __name__ == "__main__":
    main()
