import hashlib
import json
import logging
import re
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from complyai.features.suggestions.services.prompts import (
    REQUIRED_SECTIONS,
    build_prompts,
    first_node_html,
)
from complyai.platform.config import settings
from complyai.platform.exceptions import ExternalServiceError, SuggestionFormatError
from complyai.platform.providers import SuggestionProvider

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def validate_suggestion_format(content: str) -> None:
    missing = [section for section in REQUIRED_SECTIONS if section not in content]
    if missing:
        raise SuggestionFormatError(f"Suggestion is missing sections: {', '.join(missing)}")


class SuggestionCache:
    """
    Memoizes AI fix suggestions by violation fingerprint.

    The same rule failing on the same element (same impact and help link) on
    different pages shares one entry. Only successful suggestions are cached.
    Unbounded unless max_entries is set, in which case the oldest entry is
    evicted first.
    """

    def __init__(self, provider: SuggestionProvider, max_entries: Optional[int] = None):
        self.provider = provider
        self.max_entries = max_entries if max_entries is not None else settings.SUGGESTION_CACHE_MAX_ENTRIES
        self._entries: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def fingerprint(violation: Dict[str, Any]) -> str:
        key = json.dumps(
            {
                "id": violation.get("id"),
                "html": _WHITESPACE.sub(" ", first_node_html(violation)).strip(),
                "impact": violation.get("impact"),
                "helpUrl": violation.get("helpUrl"),
            },
            sort_keys=True,
        )
        return hashlib.sha256(key.encode("utf-8")).hexdigest()

    async def get_or_generate(self, violation: Dict[str, Any]) -> Dict[str, Any]:
        """
        Return a suggestion record for the violation.

        Success: {id, suggestion, model, timestamp, cached}
        Failure: {id, error, fallback_url, cached} - provider errors never propagate.
        """
        cache_key = self.fingerprint(violation)
        violation_id = violation.get("id")

        cached = self._entries.get(cache_key)
        if cached is not None:
            self.hits += 1
            logger.info(f"Using cached suggestion for {violation_id}")
            return {**cached, "cached": True}

        self.misses += 1
        request_id = uuid4()
        system_prompt, prompt = build_prompts(violation)

        try:
            content = await self.provider.complete(system_prompt, prompt)
        except ExternalServiceError as e:
            logger.error(f"[{request_id}] AI error ({violation_id}): {e}")
            return self._error_payload(violation, e.code)
        except Exception as e:
            logger.exception(f"[{request_id}] Unexpected AI error ({violation_id}): {e}")
            return self._error_payload(violation, "ServiceError")

        try:
            validate_suggestion_format(content)
        except SuggestionFormatError as e:
            logger.warning(f"[{request_id}] Invalid suggestion format for {violation_id}: {e}")

        result = {
            "id": violation_id,
            "suggestion": content.strip(),
            "model": getattr(self.provider, "model", None),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "cached": False,
        }
        self._store(cache_key, result)
        logger.info(f"[{request_id}] Cached new suggestion for {violation_id}")
        return result

    def _store(self, cache_key: str, result: Dict[str, Any]) -> None:
        self._entries[cache_key] = result
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    @staticmethod
    def _error_payload(violation: Dict[str, Any], code: str) -> Dict[str, Any]:
        return {
            "id": violation.get("id"),
            "error": f"AI Service Unavailable: {code}",
            "fallback_url": violation.get("helpUrl"),
            "cached": False,
        }

    def stats(self) -> Dict[str, int]:
        return {"size": len(self._entries), "hits": self.hits, "misses": self.misses}

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    async def close(self) -> None:
        self.clear()
        close = getattr(self.provider, "close", None)
        if close is not None:
            await close()
