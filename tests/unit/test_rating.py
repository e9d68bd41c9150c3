# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Unit tests for rating bands and evidence fusion."""

import pytest

from checkx_core.analysis.rating import append_note, fuse, rating_for
from checkx_core.schema import (
    AnalysisResult,
    AnalysisSource,
    EvidenceContext,
    NewsArticle,
    Rating,
    VerificationStatus,
)


def _evidence(status: VerificationStatus, n: int = 2) -> EvidenceContext:
    articles = [
        NewsArticle(title=f"Article {i}", source=f"outlet{i}", relevance_score=0.5, url=f"https://e.com/{i}")
        for i in range(n)
    ]
    return EvidenceContext(articles=articles, verification_status=status, summary="s", confidence_score=50)


class TestRatingBands:
    @pytest.mark.parametrize(
        "confidence,expected",
        [
            (0, Rating.VERIFIED),
            (14, Rating.VERIFIED),
            (15, Rating.NEEDS_REVIEW),
            (39, Rating.NEEDS_REVIEW),
            (40, Rating.QUESTIONABLE),
            (69, Rating.QUESTIONABLE),
            (70, Rating.FALSE),
            (100, Rating.FALSE),
        ],
    )
    def test_band_boundaries(self, confidence, expected):
        assert rating_for(confidence) == expected

    def test_result_rating_is_derived_from_confidence(self):
        result = AnalysisResult(
            confidence=85,
            rating=Rating.VERIFIED,
            reasoning="x",
            source=AnalysisSource.AI,
        )
        assert result.rating == Rating.FALSE

    def test_result_confidence_is_clamped(self):
        high = AnalysisResult(confidence=140, reasoning="x", source=AnalysisSource.AI)
        low = AnalysisResult(confidence=-5, reasoning="x", source=AnalysisSource.AI)
        assert high.confidence == 100
        assert low.confidence == 0
        assert low.rating == Rating.VERIFIED

    def test_result_topics_truncated(self):
        result = AnalysisResult(
            confidence=10,
            topics=["a", "b", "c", "d"],
            reasoning="x",
            source=AnalysisSource.RULE_BASED,
        )
        assert result.topics == ["a", "b", "c"]


class TestFusion:
    def test_verified_lowers_confidence(self):
        out = fuse(60, _evidence(VerificationStatus.VERIFIED))
        assert out.confidence == 45
        assert out.status == VerificationStatus.VERIFIED
        assert "2 related article(s)" in out.note
        assert "outlet0" in out.note

    def test_verified_floor_is_zero(self):
        assert fuse(5, _evidence(VerificationStatus.VERIFIED)).confidence == 0

    def test_contradicted_raises_confidence_with_ceiling(self):
        assert fuse(50, _evidence(VerificationStatus.CONTRADICTED)).confidence == 75
        assert fuse(90, _evidence(VerificationStatus.CONTRADICTED)).confidence == 100

    def test_mixed_and_no_coverage_keep_confidence(self):
        assert fuse(55, _evidence(VerificationStatus.MIXED)).confidence == 55
        assert fuse(55, _evidence(VerificationStatus.NO_COVERAGE)).confidence == 55

    def test_missing_evidence_is_no_coverage(self):
        out = fuse(42, None)
        assert out.confidence == 42
        assert out.status == VerificationStatus.NO_COVERAGE
        assert "no relevant news coverage" in out.note

    @pytest.mark.parametrize("status", list(VerificationStatus))
    @pytest.mark.parametrize("model_confidence", [0, 1, 50, 99, 100])
    def test_fused_confidence_stays_in_range(self, status, model_confidence):
        out = fuse(model_confidence, _evidence(status))
        assert isinstance(out.confidence, int)
        assert 0 <= out.confidence <= 100


class TestAppendNote:
    def test_joins_with_sentence_break(self):
        assert append_note("Looks fine", "Note.") == "Looks fine. Note."

    def test_keeps_existing_punctuation(self):
        assert append_note("Looks fine.", "Note.") == "Looks fine. Note."

    def test_empty_reasoning_returns_note(self):
        assert append_note("", "Note.") == "Note."
