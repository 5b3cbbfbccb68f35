from dataclasses import dataclass

from sqlalchemy.ext.asyncio import async_sessionmaker

from complyai.features.indexing.services.indexer import IndexingPipeline
from complyai.features.scan.services.orchestrator import ScanOrchestrator
from complyai.features.scan.services.scanner import AxeSeleniumScanner
from complyai.features.search.services.search_engine import SearchEngine
from complyai.features.suggestions.services.ai_client import (
    OpenAIEmbeddingProvider,
    OpenAISuggestionProvider,
)
from complyai.features.suggestions.services.suggestion_cache import SuggestionCache
from complyai.features.websites.services.store import PersistenceStore


@dataclass
class Components:
    """Long-lived pipeline pieces, created at start-up and closed at shutdown."""
    store: PersistenceStore
    suggestion_cache: SuggestionCache
    embedder: OpenAIEmbeddingProvider
    pipeline: IndexingPipeline
    search_engine: SearchEngine

    async def close(self) -> None:
        await self.suggestion_cache.close()
        await self.embedder.close()


def build_components(session_factory: async_sessionmaker) -> Components:
    store = PersistenceStore(session_factory)
    suggestion_cache = SuggestionCache(OpenAISuggestionProvider())
    embedder = OpenAIEmbeddingProvider()
    orchestrator = ScanOrchestrator(AxeSeleniumScanner(), suggestion_cache)

    return Components(
        store=store,
        suggestion_cache=suggestion_cache,
        embedder=embedder,
        pipeline=IndexingPipeline(store, orchestrator, embedder),
        search_engine=SearchEngine(session_factory, embedder),
    )
