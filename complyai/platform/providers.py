"""
Interfaces of the external collaborators the pipeline talks to.

The crawler, scanner and AI layers only depend on these protocols, so tests
and alternative backends can plug in their own implementations.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol


@dataclass
class PageSnapshot:
    """What the crawler needs from one rendered page."""
    title: str
    links: List[str] = field(default_factory=list)


class PageFetcher(Protocol):
    async def fetch(self, url: str, timeout: float) -> PageSnapshot:
        """Raises NavigationTimeout or NetworkError."""
        ...

    async def close(self) -> None:
        ...


class AccessibilityScanner(Protocol):
    async def scan(self, url: str) -> Dict[str, Any]:
        """
        Raw axe result for url: violations, incomplete, inapplicable, plus
        keyboard_issues, screen_reader_issues, page_title and engine.
        """
        ...


class SuggestionProvider(Protocol):
    model: str

    async def complete(self, system_prompt: str, prompt: str) -> str:
        """Raises RateLimited, ProviderTimeout or ServiceError."""
        ...


class EmbeddingProvider(Protocol):
    async def embed(self, text: str) -> List[float]:
        """Raises ServiceError (or another ExternalServiceError)."""
        ...
