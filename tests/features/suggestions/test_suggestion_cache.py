import pytest

from complyai.features.suggestions.services.prompts import SYSTEM_PROMPT, build_prompts
from complyai.features.suggestions.services.suggestion_cache import (
    SuggestionCache,
    validate_suggestion_format,
)
from complyai.platform.exceptions import RateLimited, SuggestionFormatError
from tests.fakes import VALID_SUGGESTION, FakeSuggestionProvider, make_violation


class RateLimitedProvider(FakeSuggestionProvider):
    async def complete(self, system_prompt, prompt):
        self.prompts.append(prompt)
        raise RateLimited("429 from provider")


class TestPrompts:
    def test_known_rule_uses_its_template(self):
        violation = make_violation("image-alt", "critical", html="<img src='logo.png'>")
        system_prompt, prompt = build_prompts(violation)

        assert prompt == "Add descriptive alt text to this image: <img src='logo.png'>"
        assert "### Fixed HTML Snippet" in system_prompt
        assert violation["helpUrl"] in system_prompt

    def test_unknown_rule_uses_generic_template(self):
        violation = make_violation("duplicate-id", "minor", html="<div id='a'></div>")
        _, prompt = build_prompts(violation)

        assert "duplicate-id violation (minor impact)" in prompt
        assert "<div id='a'></div>" in prompt

    def test_system_prompt_lists_all_sections(self):
        validate_suggestion_format(SYSTEM_PROMPT)


class TestValidateSuggestionFormat:
    def test_complete_reply_passes(self):
        validate_suggestion_format(VALID_SUGGESTION)

    def test_missing_section_is_reported(self):
        with pytest.raises(SuggestionFormatError) as exc_info:
            validate_suggestion_format("### Concise Technical Explanation\nJust text")
        assert "### WCAG Reference" in str(exc_info.value)


class TestSuggestionCache:
    def test_fingerprint_ignores_page_and_whitespace(self):
        a = make_violation("image-alt", "critical", html="<img  src='logo.png'>", target=["header", "img"])
        b = make_violation("image-alt", "critical", html="<img src='logo.png'>\n", target=["footer", "img"])
        c = make_violation("image-alt", "minor", html="<img src='logo.png'>")

        assert SuggestionCache.fingerprint(a) == SuggestionCache.fingerprint(b)
        assert SuggestionCache.fingerprint(a) != SuggestionCache.fingerprint(c)

    @pytest.mark.asyncio
    async def test_second_lookup_is_served_from_cache(self):
        provider = FakeSuggestionProvider()
        cache = SuggestionCache(provider)
        violation = make_violation("color-contrast", "serious", html="<p class='faint'>Hi</p>")

        first = await cache.get_or_generate(violation)
        second = await cache.get_or_generate(dict(violation))

        assert first["cached"] is False
        assert second["cached"] is True
        assert second["suggestion"] == first["suggestion"]
        assert len(provider.prompts) == 1
        assert cache.stats() == {"size": 1, "hits": 1, "misses": 1}

    @pytest.mark.asyncio
    async def test_rate_limit_returns_error_payload_and_is_not_cached(self):
        provider = RateLimitedProvider()
        cache = SuggestionCache(provider)
        violation = make_violation("label", "critical")

        first = await cache.get_or_generate(violation)
        second = await cache.get_or_generate(violation)

        assert first == {
            "id": "label",
            "error": "AI Service Unavailable: RateLimited",
            "fallback_url": violation["helpUrl"],
            "cached": False,
        }
        assert second["cached"] is False
        assert len(provider.prompts) == 2
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_malformed_reply_is_still_returned(self):
        cache = SuggestionCache(FakeSuggestionProvider(reply="  Add an alt attribute.  "))

        result = await cache.get_or_generate(make_violation("image-alt", "critical"))

        assert result["suggestion"] == "Add an alt attribute."
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_oldest_entry_is_evicted_when_bounded(self):
        provider = FakeSuggestionProvider()
        cache = SuggestionCache(provider, max_entries=2)
        first, second, third = (make_violation(f"rule-{i}", "minor") for i in range(3))

        for violation in (first, second, third):
            await cache.get_or_generate(violation)
        again = await cache.get_or_generate(first)

        assert again["cached"] is False
        assert len(cache) == 2
        assert len(provider.prompts) == 4

    @pytest.mark.asyncio
    async def test_close_clears_and_closes_provider(self):
        provider = FakeSuggestionProvider()
        cache = SuggestionCache(provider)
        await cache.get_or_generate(make_violation("image-alt", "critical"))

        await cache.close()

        assert len(cache) == 0
        assert provider.closed is True
