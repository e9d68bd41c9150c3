# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

import pytest
from unittest.mock import AsyncMock, MagicMock

from checkx_core.analysis.keywords import (
    KeywordExtractor,
    fallback_keywords,
    parse_keywords_response,
)
from checkx_core.llm.session_manager import SessionManager


@pytest.fixture
def sessions():
    mgr = MagicMock(spec=SessionManager)
    mgr.execute_prompt = AsyncMock(return_value=None)
    return mgr


class TestFallbackKeywords:
    def test_strips_urls_mentions_hashtags(self):
        content = "@bob Check https://t.co/abc123 #fakenews Vaccine shortage reported in Ohio hospitals"
        assert fallback_keywords(content) == ["check", "vaccine", "shortage", "reported", "ohio"]

    def test_drops_stop_words_and_short_tokens(self):
        assert fallback_keywords("The cat and the dog are on it") == ["cat", "dog"]

    def test_first_occurrence_only(self):
        assert fallback_keywords("Flood flood FLOOD warning, warning!") == ["flood", "warning"]

    def test_caps_at_five(self):
        assert len(fallback_keywords("alpha bravo charlie delta echo foxtrot golf")) == 5

    def test_deterministic(self):
        content = "Senate passes climate bill after marathon session"
        assert fallback_keywords(content) == fallback_keywords(content)


class TestParseKeywordsResponse:
    def test_first_array(self):
        raw = 'Keywords: ["WHO", "vaccine trial", "Geneva"] and also ["ignored"]'
        assert parse_keywords_response(raw) == ["WHO", "vaccine trial", "Geneva"]

    def test_filters_short_and_non_strings(self):
        assert parse_keywords_response('["ab", 3, "election", null, "  vote  "]') == ["election", "vote"]

    def test_caps_at_five(self):
        assert parse_keywords_response('["aaa","bbb","ccc","ddd","eee","fff"]') == ["aaa", "bbb", "ccc", "ddd", "eee"]

    def test_malformed_returns_empty(self):
        assert parse_keywords_response("no array here") == []
        assert parse_keywords_response('["unterminated", ]') == []


@pytest.mark.asyncio
class TestKeywordExtractor:
    async def test_empty_content_skips_model(self, sessions, runtime):
        extractor = KeywordExtractor(sessions, runtime)
        assert await extractor.extract_keywords("") == []
        assert await extractor.extract_keywords("   ") == []
        sessions.execute_prompt.assert_not_called()

    async def test_model_keywords_used(self, sessions, runtime):
        sessions.execute_prompt.return_value = '["Geneva", "vaccine study"]'
        extractor = KeywordExtractor(sessions, runtime)
        assert await extractor.extract_keywords("New vaccine study from Geneva") == ["Geneva", "vaccine study"]

    async def test_no_session_falls_back(self, sessions, runtime):
        extractor = KeywordExtractor(sessions, runtime)
        assert await extractor.extract_keywords("Earthquake hits Tokyo suburbs") == ["earthquake", "hits", "tokyo", "suburbs"]

    async def test_empty_model_array_falls_back(self, sessions, runtime):
        sessions.execute_prompt.return_value = "[]"
        extractor = KeywordExtractor(sessions, runtime)
        assert await extractor.extract_keywords("Earthquake hits Tokyo") == ["earthquake", "hits", "tokyo"]

    async def test_model_exception_falls_back(self, sessions, runtime):
        sessions.execute_prompt.side_effect = RuntimeError("boom")
        extractor = KeywordExtractor(sessions, runtime)
        assert await extractor.extract_keywords("Earthquake hits Tokyo") == ["earthquake", "hits", "tokyo"]
