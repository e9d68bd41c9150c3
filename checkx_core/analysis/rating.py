# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Rating bands and evidence fusion.

Bands (lower bound inclusive):
    >= 70       -> false
    40 .. 69    -> questionable
    15 .. 39    -> needs_review
    <  15       -> verified
"""

from __future__ import annotations

from dataclasses import dataclass

from checkx_core.schema import EvidenceContext, Rating, VerificationStatus

FALSE_THRESHOLD = 70
QUESTIONABLE_THRESHOLD = 40
NEEDS_REVIEW_THRESHOLD = 15

VERIFIED_ADJUSTMENT = -15
CONTRADICTED_ADJUSTMENT = 25


def rating_for(confidence: int) -> Rating:
    if confidence >= FALSE_THRESHOLD:
        return Rating.FALSE
    if confidence >= QUESTIONABLE_THRESHOLD:
        return Rating.QUESTIONABLE
    if confidence >= NEEDS_REVIEW_THRESHOLD:
        return Rating.NEEDS_REVIEW
    return Rating.VERIFIED


@dataclass(frozen=True)
class FusionOutcome:
    confidence: int
    note: str
    status: VerificationStatus


def _source_names(evidence: EvidenceContext, limit: int = 3) -> str:
    names: list[str] = []
    for a in evidence.articles:
        if a.source and a.source not in names:
            names.append(a.source)
        if len(names) >= limit:
            break
    return ", ".join(names) if names else "news outlets"


def fuse(model_confidence: int, evidence: EvidenceContext | None) -> FusionOutcome:
    """
    Adjust model confidence by the evidence verification status.

    Single additive pass; the result is clamped to [0, 100].
    Missing evidence is treated as no coverage.
    """
    status = evidence.verification_status if evidence else VerificationStatus.NO_COVERAGE
    base = max(0, min(100, int(model_confidence)))

    if status == VerificationStatus.VERIFIED:
        n = len(evidence.articles) if evidence else 0
        return FusionOutcome(
            confidence=max(0, base + VERIFIED_ADJUSTMENT),
            note=(
                f"News verification: {n} related article(s) from {_source_names(evidence)} "
                "corroborate the topic of this post."
            ),
            status=status,
        )

    if status == VerificationStatus.CONTRADICTED:
        return FusionOutcome(
            confidence=min(100, base + CONTRADICTED_ADJUSTMENT),
            note="News verification: available coverage contradicts the claims in this post.",
            status=status,
        )

    if status == VerificationStatus.MIXED:
        return FusionOutcome(
            confidence=base,
            note="News verification: related coverage exists but only partially matches this post.",
            status=status,
        )

    return FusionOutcome(
        confidence=base,
        note="News verification: no relevant news coverage was found for this post.",
        status=status,
    )


def append_note(reasoning: str, note: str) -> str:
    reasoning = (reasoning or "").strip()
    if not note:
        return reasoning
    if not reasoning:
        return note
    sep = " " if reasoning.endswith((".", "!", "?")) else ". "
    return f"{reasoning}{sep}{note}"
