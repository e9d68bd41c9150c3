# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Prompt templates for the detector.

Bump `checkx_core.PROMPT_VERSION` whenever the wording or the requested
response format changes.
"""

from __future__ import annotations

from datetime import datetime

from checkx_core.schema import EvidenceContext, PostRecord

DETECTOR_SYSTEM_PROMPT = """You are a misinformation detection expert. Your job is to analyze social media posts for potentially false, misleading, or unverified information.

Instructions:
1. Analyze the content for factual accuracy, misleading claims, and potential misinformation
2. Consider the context and any obvious satire or opinion content
3. Rate the probability of misinformation on a scale of 0-100%
4. Identify key topics and entities mentioned
5. Provide brief reasoning for your assessment

Response format:
{
  "confidence": [number 0-100],
  "topics": ["topic1", "topic2"],
  "reasoning": "Brief explanation of assessment"
}

Be objective and focus on factual accuracy rather than political opinions."""

RESPONSE_FORMAT_BLOCK = """Provide your analysis in this exact JSON format:
{
  "confidence": [number from 0-100 representing probability this contains misinformation],
  "topics": ["topic1", "topic2", "topic3"],
  "reasoning": "Brief explanation of why you rated it this way"
}"""

CONSIDERATIONS_BLOCK = """Consider:
- Factual accuracy and verifiability
- Presence of misleading claims or context
- Source credibility indicators
- Obvious satire or opinion vs. presented facts
- Potential harm from false information"""

KEYWORDS_PROMPT = """Extract 3-5 search keywords from this social media post that would help find related news coverage.
Prefer names, places, organizations and specific events over generic words.

Post: "{content}"

Respond with ONLY a JSON array of strings, for example: ["keyword1", "keyword2", "keyword3"]"""


def _post_date(timestamp: str) -> str:
    raw = (timestamp or "").strip()
    if not raw:
        return "unknown"
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return raw


def _post_block(post: PostRecord) -> str:
    return (
        f'Content: "{post.content}"\n'
        f"Author: {post.author or 'unknown'}\n"
        f"Posted: {_post_date(post.timestamp)}"
    )


def build_analysis_prompt(post: PostRecord) -> str:
    return (
        "Analyze this post for misinformation:\n\n"
        f"{_post_block(post)}\n\n"
        f"{RESPONSE_FORMAT_BLOCK}\n\n"
        f"{CONSIDERATIONS_BLOCK}\n\n"
        "Be objective and precise in your assessment."
    )


def format_evidence_for_prompt(evidence: EvidenceContext | None) -> str:
    if evidence is None or not evidence.articles:
        return "No related news coverage was found for this post."

    lines = [evidence.summary, ""]
    for i, article in enumerate(evidence.articles, start=1):
        line = f"{i}. {article.title} ({article.source or 'unknown source'}, relevance {article.relevance_score:.2f})"
        if article.description:
            line += f"\n   {article.description[:200]}"
        lines.append(line)
    return "\n".join(lines)


def build_evidence_prompt(post: PostRecord, evidence: EvidenceContext | None) -> str:
    return (
        "Analyze this post for misinformation, using the related news coverage below as context:\n\n"
        f"{_post_block(post)}\n\n"
        "Related news coverage:\n"
        f"{format_evidence_for_prompt(evidence)}\n\n"
        "Coverage from established outlets that matches the post's claims lowers the probability of "
        "misinformation; missing or unrelated coverage is not proof either way.\n\n"
        f"{RESPONSE_FORMAT_BLOCK}\n\n"
        f"{CONSIDERATIONS_BLOCK}\n\n"
        "Be objective and precise in your assessment."
    )


def build_keywords_prompt(content: str) -> str:
    return KEYWORDS_PROMPT.format(content=content[:1000])
