# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING

from checkx_core.analysis.prompts import build_keywords_prompt
from checkx_core.runtime_config import EngineRuntimeConfig
from checkx_core.utils.trace import Trace

if TYPE_CHECKING:
    from checkx_core.llm.session_manager import SessionManager

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 5
MIN_KEYWORD_LEN = 3

_URL_RE = re.compile(r"https?://\S+", re.IGNORECASE)
_MENTION_RE = re.compile(r"@\w+")
_HASHTAG_RE = re.compile(r"#\w+")
_PUNCT_RE = re.compile(r"[^\w\s]")
_ARRAY_RE = re.compile(r"\[[\s\S]*?\]")

STOP_WORDS = frozenset({
    "the", "and", "for", "are", "but", "not", "you", "all", "any", "can", "had",
    "her", "was", "one", "our", "out", "has", "him", "his", "how", "its", "may",
    "new", "now", "old", "see", "two", "who", "did", "get", "got", "let", "say",
    "she", "too", "use", "way", "why", "yes", "yet", "off", "own", "per", "via",
    "this", "that", "with", "have", "from", "they", "will", "would", "there",
    "their", "what", "about", "which", "when", "make", "like", "time", "just",
    "know", "take", "people", "into", "year", "your", "good", "some", "could",
    "them", "than", "then", "look", "only", "come", "over", "think", "also",
    "back", "after", "work", "first", "well", "even", "want", "because", "these",
    "give", "most", "very", "been", "were", "being", "here", "more", "much",
    "such", "should", "does", "doing", "dont", "didnt", "cant", "wont", "isnt",
    "arent", "im", "ive", "youre", "thats", "where", "while", "those", "each",
    "other", "every", "again", "still", "really", "need", "said", "says",
})


def fallback_keywords(content: str) -> list[str]:
    """
    Deterministic keyword extraction without a model.

    URLs, @mentions, hashtags and punctuation are removed; the remaining
    lowercase words minus stop-words are kept in order of first occurrence.
    """
    text = _URL_RE.sub(" ", content or "")
    text = _MENTION_RE.sub(" ", text)
    text = _HASHTAG_RE.sub(" ", text)
    text = text.replace("'", "").replace("’", "")
    text = _PUNCT_RE.sub(" ", text).lower()

    out: list[str] = []
    for word in text.split():
        if len(word) < MIN_KEYWORD_LEN or word in STOP_WORDS or word in out:
            continue
        out.append(word)
        if len(out) >= MAX_KEYWORDS:
            break
    return out


def parse_keywords_response(raw: str) -> list[str]:
    """First JSON array in the text; string entries longer than 2 chars, max 5."""
    m = _ARRAY_RE.search(raw or "")
    if not m:
        return []
    try:
        data = json.loads(m.group(0))
    except json.JSONDecodeError:
        return []
    if not isinstance(data, list):
        return []

    out: list[str] = []
    for item in data:
        if not isinstance(item, str):
            continue
        kw = item.strip()
        if len(kw) >= MIN_KEYWORD_LEN:
            out.append(kw)
    return out[:MAX_KEYWORDS]


class KeywordExtractor:
    """Search keywords for news retrieval, model-first with a local fallback."""

    def __init__(self, session_manager: "SessionManager", runtime: EngineRuntimeConfig | None = None):
        self._sessions = session_manager
        self._runtime = runtime or EngineRuntimeConfig.load_from_env()

    async def extract_keywords(self, content: str) -> list[str]:
        if not (content or "").strip():
            return []

        try:
            raw = await self._sessions.execute_prompt(
                build_keywords_prompt(content),
                retries=self._runtime.llm.prompt_retries,
            )
        except Exception as e:
            logger.warning("[Keywords] Model extraction failed: %s", e)
            raw = None

        if raw:
            keywords = parse_keywords_response(raw)
            if keywords:
                logger.debug("[Keywords] Model keywords: %s", keywords)
                Trace.event("keywords.model", {"keywords": keywords})
                return keywords
            logger.info("[Keywords] Model returned no usable keywords; using fallback")

        keywords = fallback_keywords(content)
        Trace.event("keywords.fallback", {"keywords": keywords})
        return keywords
