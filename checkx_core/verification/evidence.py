# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
News evidence for a post.

Keywords go to NewsData as one query; each article is scored by token overlap
with the keywords and the mean score decides the verification status.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

from checkx_core.runtime_config import EngineRuntimeConfig
from checkx_core.schema import EvidenceContext, NewsArticle, VerificationStatus
from checkx_core.tools.newsdata_client import EvidenceUnavailable, NewsDataClient
from checkx_core.utils.trace import Trace

logger = logging.getLogger(__name__)

VERIFIED_MIN_RELEVANCE = 0.4
MIXED_MIN_RELEVANCE = 0.2
# Applies to keyword and article tokens alike; "u" from "U.S." would match almost anything.
MIN_TOKEN_LEN = 3
# Scores are ratios of small integers; rounding the mean removes float noise at the band edges.
_MEAN_DIGITS = 9

_WORD_RE = re.compile(r"\w+")


def _tokens(text: str) -> list[str]:
    return [t for t in _WORD_RE.findall((text or "").lower()) if len(t) >= MIN_TOKEN_LEN]


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def relevance_score(keywords: list[str], article_text: str) -> float:
    """
    Share of keyword tokens found in the article.

    A keyword token matches when an article token contains it or is contained
    in it, so "vaccine" matches "vaccines" and "covid19" matches "covid".
    Tokens shorter than MIN_TOKEN_LEN are ignored on both sides.
    """
    kw_tokens = [t for kw in keywords for t in _tokens(kw)]
    if not kw_tokens:
        return 0.0

    article_tokens = set(_tokens(article_text))
    if not article_tokens:
        return 0.0

    matches = sum(
        1 for kt in kw_tokens
        if any(kt in at or at in kt for at in article_tokens)
    )
    return max(0.0, min(1.0, matches / len(kw_tokens)))


def _mean_relevance(articles: list[NewsArticle]) -> float:
    if not articles:
        return 0.0
    return round(math.fsum(a.relevance_score for a in articles) / len(articles), _MEAN_DIGITS)


def classify_verification(articles: list[NewsArticle]) -> VerificationStatus:
    # CONTRADICTED needs semantic stance detection; overlap scoring never yields it.
    if not articles:
        return VerificationStatus.NO_COVERAGE
    avg = _mean_relevance(articles)
    if avg > VERIFIED_MIN_RELEVANCE:
        return VerificationStatus.VERIFIED
    if avg > MIXED_MIN_RELEVANCE:
        return VerificationStatus.MIXED
    return VerificationStatus.NO_COVERAGE


def build_evidence_context(articles: list[NewsArticle]) -> EvidenceContext | None:
    if not articles:
        return None

    avg = _mean_relevance(articles)
    sources: list[str] = []
    for a in articles:
        if a.source and a.source not in sources:
            sources.append(a.source)

    summary = (
        f"Found {len(articles)} related article(s) from {len(sources)} source(s)"
        f"{': ' + ', '.join(sources) if sources else ''}; mean relevance {avg:.2f}."
    )
    return EvidenceContext(
        articles=list(articles),
        verification_status=classify_verification(articles),
        summary=summary,
        confidence_score=max(0, min(100, _round_half_up(avg * 100))),
    )


def _to_article(item: dict[str, Any], keywords: list[str]) -> NewsArticle:
    title = str(item.get("title") or "")
    description = str(item.get("description") or "")
    return NewsArticle(
        title=title,
        source=str(item.get("source_id") or item.get("source_name") or ""),
        relevance_score=relevance_score(keywords, f"{title} {description}"),
        url=str(item.get("link") or ""),
        description=description,
        published_at=str(item.get("pubDate") or ""),
    )


class EvidenceRetriever:
    """Fetches news coverage for a post's keywords and scores it by overlap."""

    def __init__(self, client: NewsDataClient, runtime: EngineRuntimeConfig | None = None):
        self._client = client
        self._runtime = runtime or EngineRuntimeConfig.load_from_env()

    async def fetch_evidence(self, keywords: list[str]) -> list[NewsArticle]:
        keywords = [k for k in (keywords or []) if isinstance(k, str) and k.strip()]
        if not keywords:
            return []

        query = " ".join(keywords)
        try:
            items = await self._client.latest(query=query, size=self._runtime.search.news_max_results)
        except EvidenceUnavailable as e:
            logger.info("[Evidence] No evidence: %s", e)
            Trace.event("evidence.fetch", {"query": query, "ok": False, "error": str(e)[:200]})
            return []
        except Exception as e:
            logger.warning("[Evidence] Unexpected error fetching news: %s", e)
            Trace.event("evidence.fetch", {"query": query, "ok": False, "error": str(e)[:200]})
            return []

        articles: list[NewsArticle] = []
        for item in items:
            try:
                articles.append(_to_article(item, keywords))
            except Exception as e:
                logger.debug("[Evidence] Skipping malformed article: %s", e)

        articles.sort(key=lambda a: a.relevance_score, reverse=True)
        logger.debug("[Evidence] %d article(s) for query=%r", len(articles), query)
        Trace.event("evidence.fetch", {
            "query": query,
            "ok": True,
            "count": len(articles),
            "scores": [round(a.relevance_score, 3) for a in articles],
        })
        return articles
