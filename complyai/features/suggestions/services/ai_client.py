import logging
from typing import List, Optional

import openai
from openai import AsyncOpenAI

from complyai.platform.config import settings
from complyai.platform.exceptions import (
    ExternalServiceError,
    ProviderTimeout,
    RateLimited,
    ServiceError,
)

logger = logging.getLogger(__name__)


def _translate_openai_error(error: Exception) -> ExternalServiceError:
    if isinstance(error, openai.RateLimitError):
        return RateLimited(f"Rate limited by OpenAI: {error}")
    if isinstance(error, openai.APITimeoutError):
        return ProviderTimeout(f"OpenAI request timed out: {error}")
    return ServiceError(f"OpenAI request failed: {error}")


class _OpenAIClientMixin:
    timeout: float
    max_retries: int

    def __init__(self):
        self._client: Optional[AsyncOpenAI] = None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            try:
                self._client = AsyncOpenAI(
                    api_key=settings.OPENAI_API_KEY,
                    timeout=self.timeout,
                    max_retries=self.max_retries,
                )
            except openai.OpenAIError as e:
                raise ServiceError(f"OpenAI client is not configured: {e}") from e
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


class OpenAISuggestionProvider(_OpenAIClientMixin):
    """Chat completion backend for fix suggestions. Retries happen inside the SDK."""

    def __init__(
        self,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        super().__init__()
        self.model = model or settings.OPENAI_MODEL
        self.timeout = timeout or settings.SUGGESTION_TIMEOUT_SECONDS
        self.max_retries = settings.SUGGESTION_MAX_RETRIES if max_retries is None else max_retries

    async def complete(self, system_prompt: str, prompt: str) -> str:
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.2,
                max_tokens=500,
                top_p=0.9,
            )
        except openai.OpenAIError as e:
            raise _translate_openai_error(e) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ServiceError("OpenAI returned an empty suggestion")
        return content


class OpenAIEmbeddingProvider(_OpenAIClientMixin):
    """Embedding backend. Not retried: a failure leaves the violation without an embedding."""

    def __init__(self, model: Optional[str] = None, timeout: Optional[float] = None):
        super().__init__()
        self.model = model or settings.EMBEDDING_MODEL
        self.timeout = timeout or settings.EMBEDDING_TIMEOUT_SECONDS
        self.max_retries = 0

    async def embed(self, text: str) -> List[float]:
        client = self._get_client()
        try:
            response = await client.embeddings.create(model=self.model, input=text)
        except openai.OpenAIError as e:
            raise _translate_openai_error(e) from e

        if not response.data:
            raise ServiceError("OpenAI returned no embedding")
        return list(response.data[0].embedding)
