# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Pattern-based scoring, the last tier of the detector.

Pure function of the post text: no model, no network, same input gives the
same confidence, topics and reasoning.
"""

from __future__ import annotations

import re

from checkx_core.schema import AnalysisResult, AnalysisSource

BASE_CONFIDENCE = 10
KEYWORD_WEIGHT = 15
PATTERN_WEIGHT = 20
STYLE_WEIGHT = 10

MISINFORMATION_KEYWORDS = (
    "fake news",
    "hoax",
    "conspiracy",
    "debunked",
    "false claim",
    "unverified",
    "misleading",
    "manipulated",
    "doctored",
)

HIGH_RISK_PATTERNS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\b(breaking|urgent|exclusive).*!{2,}",
        r"\b(they don't want you to know|hidden truth|cover.?up)\b",
        r"\b(miracle cure|doctors hate|secret method)\b",
        r"\b(will shock you|you won't believe)\b",
    )
)

_EXCESS_PUNCT_RE = re.compile(r"!{2,}|\.{3,}|\?{2,}")
_CAPS_WORD_RE = re.compile(r"[A-Z]{3,}")

# (topic, trigger substrings)
TOPIC_RULES = (
    ("health", ("covid", "vaccine")),
    ("politics", ("election", "vote")),
    ("climate", ("climate", "weather")),
)


def rule_based_analysis(content: str) -> AnalysisResult:
    text = content or ""
    lower = text.lower()

    confidence = BASE_CONFIDENCE
    reasoning = "Analysis based on content patterns"

    keyword_hits = [k for k in MISINFORMATION_KEYWORDS if k in lower]
    if keyword_hits:
        confidence += len(keyword_hits) * KEYWORD_WEIGHT
        reasoning += f". Contains potential misinformation keywords: {', '.join(keyword_hits)}"

    pattern_hits = sum(1 for p in HIGH_RISK_PATTERNS if p.search(text))
    if pattern_hits:
        confidence += pattern_hits * PATTERN_WEIGHT
        reasoning += ". Contains sensationalist language patterns"

    # Capitalization is checked before lowercasing.
    excess_punct = _EXCESS_PUNCT_RE.search(text) is not None
    caps_words = len(_CAPS_WORD_RE.findall(text))
    if excess_punct or caps_words > 2:
        confidence += STYLE_WEIGHT
        reasoning += ". Contains excessive punctuation or capitalization"

    topics = [topic for topic, triggers in TOPIC_RULES if any(t in lower for t in triggers)]

    return AnalysisResult(
        confidence=max(0, min(100, confidence)),
        topics=topics,
        reasoning=reasoning,
        source=AnalysisSource.RULE_BASED,
    )
