# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 CheckX Contributors
"""
CheckX Core Schema Module

Input (PostRecord), evidence (NewsArticle, EvidenceContext) and
output (AnalysisResult, ParsedVerdict) records.
"""

from checkx_core.schema.serialization import SchemaModel, FrozenSchemaModel

from checkx_core.schema.analysis import (
    MAX_TOPICS,
    Rating,
    AnalysisSource,
    VerificationStatus,
    PostRecord,
    NewsArticle,
    EvidenceContext,
    AnalysisResult,
    ParsedVerdict,
    clamp_confidence,
    now_iso,
)

__all__ = [
    "SchemaModel",
    "FrozenSchemaModel",
    "MAX_TOPICS",
    "Rating",
    "AnalysisSource",
    "VerificationStatus",
    "PostRecord",
    "NewsArticle",
    "EvidenceContext",
    "AnalysisResult",
    "ParsedVerdict",
    "clamp_confidence",
    "now_iso",
]
