# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 CheckX Contributors
"""
Analysis Pydantic Models

PostRecord is the INPUT of the detector; AnalysisResult is its OUTPUT.

Key Design Principles:
1. Records are immutable once produced (frozen models)
2. confidence is always an int in [0, 100]
3. rating is derived from confidence, never stored independently
4. evidence is attached only when retrieval returned at least one article
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import Field, field_validator, model_validator

from checkx_core.schema.serialization import FrozenSchemaModel

MAX_TOPICS = 3


def now_iso() -> str:
    """UTC timestamp in the `2025-01-01T12:00:00.000Z` form."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def clamp_confidence(value: Any) -> int:
    """Round to int and clamp to [0, 100]. Raises ValueError for non-numeric input."""
    if isinstance(value, bool):
        raise ValueError("confidence must be a number, not a bool")
    if isinstance(value, str):
        value = value.strip().rstrip("%").strip()
    v = float(value)
    if v != v:  # NaN
        raise ValueError("confidence must not be NaN")
    return max(0, min(100, int(round(v))))


class Rating(str, Enum):
    """Discrete verdict shown to the user."""
    VERIFIED = "verified"
    QUESTIONABLE = "questionable"
    FALSE = "false"
    NEEDS_REVIEW = "needs_review"


class AnalysisSource(str, Enum):
    """Which tier of the fallback chain produced the result."""
    AI = "ai"
    RULE_BASED = "rule_based"
    EVIDENCE_ENHANCED = "evidence_enhanced"


class VerificationStatus(str, Enum):
    """How retrieved news coverage relates to the post."""
    VERIFIED = "verified"
    CONTRADICTED = "contradicted"
    """Defined for consumers; relevance scoring cannot produce it."""
    NO_COVERAGE = "no_coverage"
    MIXED = "mixed"


class PostRecord(FrozenSchemaModel):
    """A social-media post as supplied by the page extractor."""

    id: str
    content: str = ""
    author: str = ""
    timestamp: str = ""
    """ISO-8601 post time."""
    url: str = ""


class NewsArticle(FrozenSchemaModel):
    """One retrieved article with its keyword-overlap score."""

    title: str = ""
    source: str = ""
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)
    url: str = ""
    description: str = ""
    published_at: str = ""


class EvidenceContext(FrozenSchemaModel):
    articles: list[NewsArticle] = Field(default_factory=list)
    verification_status: VerificationStatus = VerificationStatus.NO_COVERAGE
    summary: str = ""
    confidence_score: int = Field(default=0, ge=0, le=100)


class AnalysisResult(FrozenSchemaModel):
    """
    Final verdict for one post.

    The rating is recomputed from the clamped confidence on construction,
    so a result can never carry an inconsistent pair.
    """

    confidence: int
    rating: Rating = Rating.NEEDS_REVIEW
    topics: list[str] = Field(default_factory=list)
    reasoning: str = Field(min_length=1)
    timestamp: str = Field(default_factory=now_iso)
    source: AnalysisSource
    evidence: Optional[EvidenceContext] = None

    @model_validator(mode="before")
    @classmethod
    def _derive_rating(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        from checkx_core.analysis.rating import rating_for

        out = dict(data)
        conf = clamp_confidence(out.get("confidence", 0))
        out["confidence"] = conf
        out["rating"] = rating_for(conf)
        topics = out.get("topics") or []
        out["topics"] = [str(t) for t in topics][:MAX_TOPICS]
        return out


class ParsedVerdict(FrozenSchemaModel):
    """Structured model answer, produced by the response parser."""

    confidence: int = 50
    topics: list[str] = Field(default_factory=list)
    reasoning: str = "AI analysis completed"
    degraded: bool = False
    """True when strict JSON parsing failed and fields were extracted one by one."""
    raw_response: str = ""

    @field_validator("topics")
    @classmethod
    def _cap_topics(cls, v: list[str]) -> list[str]:
        return v[:MAX_TOPICS]
