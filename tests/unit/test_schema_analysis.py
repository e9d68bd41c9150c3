# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

import re

import pytest
from pydantic import ValidationError

from checkx_core.schema import (
    AnalysisResult,
    AnalysisSource,
    EvidenceContext,
    NewsArticle,
    PostRecord,
    clamp_confidence,
    now_iso,
)


class TestClampConfidence:
    @pytest.mark.parametrize("raw,expected", [(42, 42), (42.5, 42), (43.5, 44), ("77", 77), ("80%", 80), (-1, 0), (1000, 100)])
    def test_values(self, raw, expected):
        assert clamp_confidence(raw) == expected

    @pytest.mark.parametrize("raw", [True, "high", float("nan"), None])
    def test_rejects_non_numeric(self, raw):
        with pytest.raises((ValueError, TypeError)):
            clamp_confidence(raw)


def test_now_iso_format():
    assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z", now_iso())


def test_post_record_from_dict_ignores_extra_fields():
    post = PostRecord.from_dict({"id": "1", "content": "hi", "likes": 12})
    assert post.id == "1"
    assert post.author == ""


def test_post_record_from_dict_rejects_non_dict():
    with pytest.raises(TypeError):
        PostRecord.from_dict(["id", "1"])


def test_records_are_frozen():
    post = PostRecord(id="1")
    with pytest.raises(ValidationError):
        post.content = "changed"


def test_relevance_score_bounds():
    with pytest.raises(ValidationError):
        NewsArticle(title="t", relevance_score=1.5)


def test_result_requires_reasoning():
    with pytest.raises(ValidationError):
        AnalysisResult(confidence=10, reasoning="", source=AnalysisSource.AI)


def test_result_serializes_enums_and_drops_missing_evidence():
    result = AnalysisResult(
        confidence=55,
        reasoning="r",
        source=AnalysisSource.EVIDENCE_ENHANCED,
        evidence=EvidenceContext(),
    )
    d = result.to_dict()
    assert d["rating"] == "questionable"
    assert d["source"] == "evidence_enhanced"
    assert d["evidence"]["verification_status"] == "no_coverage"

    assert "evidence" not in AnalysisResult(confidence=1, reasoning="r", source=AnalysisSource.AI).to_dict()
